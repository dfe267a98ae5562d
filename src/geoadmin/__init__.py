"""geoadmin - admin client for the countries/states/cities catalog backend."""

__version__ = "0.1.0"
