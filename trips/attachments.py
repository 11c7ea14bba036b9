import json
from dataclasses import dataclass


@dataclass(frozen=True)
class Attachment:
    name: str
    url: str

    def to_dict(self):
        return {'name': self.name, 'url': self.url}


def parse_attachments(payload):
    """
    Reads an upload payload from the wire into a list of Attachments.

    Accepts a list of {name, url} objects, the same list JSON-encoded into a
    string, or an empty string / None for "no files". The url is opaque and
    may be a data-URI.
    """
    if payload in (None, ''):
        return []
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            raise ValueError("Upload payload is not valid JSON")
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, (list, tuple)):
        raise ValueError("Upload payload must be a list of files")

    attachments = []
    for item in payload:
        if isinstance(item, Attachment):
            attachments.append(item)
            continue
        if not isinstance(item, dict) or not item.get('url'):
            raise ValueError("Each uploaded file needs a name and a url")
        attachments.append(Attachment(name=str(item.get('name') or ''), url=str(item['url'])))
    return attachments


def dump_attachments(attachments):
    """Wire/storage form of a list of Attachments."""
    return [a.to_dict() for a in attachments or []]
