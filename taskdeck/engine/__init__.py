"""TaskDeck engine — configuration, logging and the error hierarchy."""
