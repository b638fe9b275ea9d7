"""Browser session, configuration and HTTP surface for the browser tools."""
