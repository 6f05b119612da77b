"""meshmap command line interface."""
