from typing import Any
from fastapi.encoders import jsonable_encoder


def success(data: Any) -> dict:
    return {'success': True, 'data': jsonable_encoder(data, by_alias=True)}


def message(text: str) -> dict:
    return {'success': True, 'message': text}


def error(text: str) -> dict:
    return {'success': False, 'error': text}
