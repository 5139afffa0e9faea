"""
Sequencing error models

Errors introduced into simulated reads after quality scores are drawn.
"""

from .base import BaseErrorModel, IdentityErrorModel
from .sequencing import SequencingErrorModel, error_probability


def get_error_model(name: str, **kwargs) -> BaseErrorModel:
    """
    Look up an error model by name.

    Args:
        name: model name (identity, sequencing)
        **kwargs: passed to the model

    Returns:
        Error model instance
    """
    models = {
        "identity": IdentityErrorModel,
        "sequencing": SequencingErrorModel,
    }

    if name not in models:
        raise ValueError(f"Unknown error model: {name}. Available: {list(models.keys())}")

    return models[name](**kwargs)


__all__ = [
    'BaseErrorModel',
    'IdentityErrorModel',
    'SequencingErrorModel',
    'error_probability',
    'get_error_model'
]
