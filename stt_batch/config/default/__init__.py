"""Built-in configuration defaults."""

from .model import *  # noqa: F401,F403
from .model import __all__ as _model_all
from .runtime import *  # noqa: F401,F403
from .runtime import __all__ as _runtime_all

__all__ = [*_model_all, *_runtime_all]
