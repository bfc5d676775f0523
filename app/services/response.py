class ListResponseMixin:
    """Wraps a service's ``list`` in the ``{items, count, limit, offset}`` envelope.

    ``limit`` and ``offset`` are read from keyword arguments, or from the last
    two positional arguments, matching the signature of every ``list`` method.
    """

    @classmethod
    def list_response(cls, db, *args, **kwargs) -> dict:
        items = cls.list(db, *args, **kwargs)
        if "limit" in kwargs or "offset" in kwargs:
            limit = kwargs.get("limit")
            offset = kwargs.get("offset")
        elif len(args) >= 2:
            limit, offset = args[-2], args[-1]
        else:
            limit = offset = None
        return {"items": items, "count": len(items), "limit": limit, "offset": offset}
