from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from bloodbank.utils.compatibility import BLOOD_GROUPS
import re

DATE_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S.%fZ', '%Y-%m-%dT%H:%M:%SZ', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M']

BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_GROUPS]
OPTIONAL_BLOOD_GROUP_CHOICES = [('', 'Not specified')] + BLOOD_GROUP_CHOICES


def to_snake(key):
    return re.sub(r'(?<=[a-z0-9])(?=[A-Z])', '_', key).lower()


def _form_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def flatten_payload(payload, prefix=''):
    """
    Turn a JSON object into WTForms form data: camelCase keys become snake_case,
    nested objects use FormField's 'parent-child' names and lists use
    FieldList's 'name-index' names. Nulls are dropped.
    """
    items = []
    for key, value in payload.items():
        name = prefix + to_snake(key)
        if isinstance(value, dict):
            items.extend(flatten_payload(value, name + '-'))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, dict):
                    items.extend(flatten_payload(item, f'{name}-{index}-'))
                elif item is not None:
                    items.append((f'{name}-{index}', _form_value(item)))
        elif value is not None:
            items.append((name, _form_value(value)))
    return items


def merge_payload(current, changes):
    """
    Overlay a partial update on a serialized record, merging nested objects
    """
    merged = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_payload(merged[key], value)
        else:
            merged[key] = value
    return merged


def first_error(errors, path=''):
    """
    First message in a (possibly nested) WTForms errors structure, prefixed
    with the dotted field path
    """
    if isinstance(errors, dict):
        for field, messages in errors.items():
            message = first_error(messages, f'{path}.{field}' if path else str(field))
            if message:
                return message
    elif isinstance(errors, (list, tuple)):
        for message in errors:
            message = first_error(message, path)
            if message:
                return message
    elif errors:
        return f'{path}: {errors}' if path else str(errors)
    return None


class ApiForm(FlaskForm):
    """
    FlaskForm fed from a JSON body instead of a submitted HTML form
    """

    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, payload, **kwargs):
        if not isinstance(payload, dict):
            payload = {}
        return cls(formdata=MultiDict(flatten_payload(payload)), **kwargs)

    @property
    def error_message(self):
        return first_error(self.errors) or 'Invalid data'
