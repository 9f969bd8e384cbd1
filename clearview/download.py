import base64
import time

from clearview.utils import mime_subtype


def send_bytes(data, filename, mime_type=None):
    """
    Convert raw bytes into the format expected by the Download component.
    :param data: the bytes to be sent
    :param filename: the name of the file
    :param mime_type: mime type of the file (optional, passed to Blob in the javascript layer)
    :return: dict of file content (base64 encoded) and meta data used by the Download component
    """
    content = base64.b64encode(data).decode()
    return dict(content=content, filename=filename, type=mime_type, base64=True)


def cleaned_filename(mime_type, timestamp=None):
    """
    Name of a downloaded result, e.g. "clearview-cleaned-1700000000000.png". The extension is taken from the mime type.
    :param mime_type: mime type of the image
    :param timestamp: epoch time in seconds, defaults to now
    """
    timestamp = time.time() if timestamp is None else timestamp
    extension = mime_subtype(mime_type)
    return f"clearview-cleaned-{int(timestamp * 1000)}.{extension}"


def send_image(data, mime_type, timestamp=None):
    """
    Wrap a processed image for the Download component. The bytes are sent as they are, no format conversion is done.
    """
    return send_bytes(data, cleaned_filename(mime_type, timestamp), mime_type=mime_type)
