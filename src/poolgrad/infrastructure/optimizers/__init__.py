from ._sgd import SGD
from ._adam import Adam

__all__ = [SGD.__name__, Adam.__name__]
