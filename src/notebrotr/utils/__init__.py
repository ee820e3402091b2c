"""Signing identity and relay transport helpers.

Attributes:
    keys: Loading, generating and minting Nostr identities. A credential
        file that exists but cannot be used raises
        [ConfigurationError][notebrotr.core.exceptions.ConfigurationError].
    transport: ``nostr_sdk.Client`` factory and single-relay connection.

Note:
    Apart from the exception types in ``notebrotr.core.exceptions``, the
    utils layer has no imports from ``notebrotr.core`` or
    ``notebrotr.services``.

Examples:
    ```python
    from notebrotr.utils.keys import load_or_create_identity
    from notebrotr.utils.transport import connect_relay
    ```
"""
