class CatalogError(Exception):
    pass


class CatalogItemNotFoundError(CatalogError):
    pass


class CatalogItemConflictError(CatalogError):
    pass
