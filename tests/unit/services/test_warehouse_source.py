from stock_sync.services.warehouse_source import WarehouseSource, parse_warehouses


def test_parse_warehouses_skips_blank_and_comment_lines():
    content = "# main warehouses\nwh-1\n\n   wh-2  \n#wh-3\n\r\nwh-4\n"
    assert parse_warehouses(content) == ["wh-1", "wh-2", "wh-4"]


def test_load_reads_file_in_order(tmp_path):
    path = tmp_path / "warehouses.txt"
    path.write_text("wh-b\nwh-a\n", encoding="utf-8")

    assert WarehouseSource(path).load() == ["wh-b", "wh-a"]


def test_load_creates_missing_file(tmp_path, event_log):
    path = tmp_path / "config" / "warehouses.txt"

    assert WarehouseSource(path, event_log).load() == []
    assert path.exists()
    assert path.read_text(encoding="utf-8") == ""
    assert "not found" in event_log.log_file.read_text(encoding="utf-8")


def test_load_rereads_file_on_every_call(tmp_path):
    path = tmp_path / "warehouses.txt"
    path.write_text("wh-1\n", encoding="utf-8")
    source = WarehouseSource(path)

    assert source.load() == ["wh-1"]
    path.write_text("wh-1\nwh-2\n", encoding="utf-8")
    assert source.load() == ["wh-1", "wh-2"]


def test_load_returns_empty_list_on_read_error(tmp_path, event_log):
    # A directory in place of the file cannot be read
    path = tmp_path / "warehouses.txt"
    path.mkdir()

    assert WarehouseSource(path, event_log).load() == []
    assert "Error reading warehouse list" in event_log.log_file.read_text(encoding="utf-8")


def test_load_returns_empty_list_on_undecodable_file(tmp_path, event_log):
    path = tmp_path / "warehouses.txt"
    path.write_bytes(b"\xff\xfe\xfa not utf-8")

    assert WarehouseSource(path, event_log).load() == []
