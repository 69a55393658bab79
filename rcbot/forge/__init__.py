"""GitHub REST adapter and the HTTP transport it runs on."""
