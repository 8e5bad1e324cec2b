"""Edge Authorizer service."""
