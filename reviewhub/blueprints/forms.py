from werkzeug.datastructures import MultiDict


def json_formdata(payload):
    """Flatten a JSON object into form data WTForms can process.

    Nested objects and nulls are skipped; callers read those from the payload.
    """
    md = MultiDict()
    for key, value in (payload or {}).items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        md.add(key, str(value))
    return md
