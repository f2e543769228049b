"""Usage domain — plan limits and monthly quota accounting.

Use the container's ``usage_service`` (UsageServiceProtocol) from
collaborators; it serializes every write per tenant. Pure transitions live
in ``accounting`` and can be used directly on a ``schemas.UsageAccount``.
"""
