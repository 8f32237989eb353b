"""
utils/qr_utils.py

Purpose: Terminal rendering of WhatsApp pairing QR codes

- Lets an operator scan the pairing challenge straight from the logs
"""

import io

import qrcode


def render_qr_ascii(data: str) -> str:
    """
    Renders data as a QR code drawn with block characters.

    Returns:
        Multi-line string, one text row per two QR module rows
    """
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)

    out = io.StringIO()
    qr.print_ascii(out=out)
    return out.getvalue()
