"""Engine services: the business logic of wallet sign-in."""
