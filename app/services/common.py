import uuid

from fastapi import HTTPException


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid identifier: {value}")


def apply_pagination(query, limit, offset):
    if limit is not None:
        query = query.limit(limit)
    if offset:
        query = query.offset(offset)
    return query
