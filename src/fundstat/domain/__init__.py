"""Domain layer - models, views and the fund registry."""
