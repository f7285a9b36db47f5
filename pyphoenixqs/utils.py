from pyphoenixqs.globals import JSON_ENDPOINT, RESPONSE_EXCERPT


def strip_statement(sql: str) -> str:
    """Strip surrounding whitespace and trailing terminators of a statement

    The query server rejects statements ending with ``;``, so
    ``"SELECT * FROM t;   "`` and ``"SELECT * FROM t"`` are sent the
    same way.

    Example:
        >>> strip_statement("  SELECT 1 ; ;\\n")
        'SELECT 1'
    """
    stripped = sql.strip()
    while stripped.endswith(';'):
        stripped = stripped[:-1].rstrip()
    return stripped


def json_endpoint(url: str) -> str:
    """Return the JSON endpoint of a query server base url

    Scheme defaults to http, and the ``/json`` suffix is appended when
    missing.
    """
    url = url.strip().rstrip('/')
    if '://' not in url:
        url = f'http://{url}'
    if not url.endswith(JSON_ENDPOINT):
        url += JSON_ENDPOINT
    return url


def excerpt(text, limit=RESPONSE_EXCERPT):
    if text is None:
        return ''
    return text if len(text) <= limit else text[:limit] + '...'
