"""reviewdesk command line interface."""
