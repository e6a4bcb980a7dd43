from .list_grants import GrantPage, ListAccessGrantsUseCase

__all__ = ["GrantPage", "ListAccessGrantsUseCase"]
