"""Thread actions and the bulk orchestrator that runs them."""
