"""
Texture Store Exceptions
========================

Error taxonomy shared by the codec, index, registration pipeline and
pruner. Callers that only care whether the store failed can catch
TextureStoreError.
"""


class TextureStoreError(Exception):
    """Base exception for all texture store errors."""
    pass


class DecodeError(TextureStoreError):
    """Raised when an encoded bitmap cannot be decoded."""
    pass


class StoreInitError(TextureStoreError):
    """Raised when the persistence directory cannot be rehydrated."""
    pass


class PersistenceWriteError(TextureStoreError):
    """Raised when a new texture cannot be written to disk."""
    pass
