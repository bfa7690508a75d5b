"""
Module which contains utils for parsing JSON.

Functions exposed here mirror the stdlib json names, but they utilize orjson
for encoding and decoding.
"""

import orjson

def dumps(obj, *, default=None, indent=None, sort_keys=False, omit_none=False):
    option = 0

    if indent is not None:
        option |= orjson.OPT_INDENT_2

    if sort_keys:
        option |= orjson.OPT_SORT_KEYS

    # Matches JSON.stringify() which leaves out undefined members.
    if omit_none and isinstance(obj, dict):
        obj = {k: v for k, v in obj.items() if v is not None}

    return orjson.dumps(obj, default=default, option=option).decode('utf-8')

def loads(s):
    # Accept either str or bytes
    if isinstance(s, str):
        s = s.encode('utf-8')
    return orjson.loads(s)
