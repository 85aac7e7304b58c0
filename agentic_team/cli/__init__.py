"""agentic-team command line interface."""
