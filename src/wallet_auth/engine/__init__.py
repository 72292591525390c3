"""Engine: models, repositories and services behind the HTTP layer."""
