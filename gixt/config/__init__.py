"""Configuration for gixt."""

from gixt.config.base import GixtSettings, get_settings

__all__ = ['GixtSettings', 'get_settings']
