from .stock_snapshot import StockSnapshot

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'StockSnapshot',
]
