#import modeli zeby SQLAlchemy zarejestrowal je w Base.metadata

from cart_tracker.data.models.cart_line import CartLineModel

__all__ = ["CartLineModel"]
