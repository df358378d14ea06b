"""HTTP clients for the external agent and source-hosting APIs."""
