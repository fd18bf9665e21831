"""
PrintVault Test Suite — File builders shared by fixtures.

Builds minimal binary STL and 3MF payloads in memory so tests never depend on
fixture files checked into the repo.
"""

import io
import struct
import zipfile

STL_HEADER = b"PrintVault binary test mesh"


def box_triangles(width, depth, height, count=2):
    """Triangles whose vertices span exactly width x depth x height.

    count > 2 repeats the spanning pair, which keeps the bounding box unchanged.
    """
    pair = [
        ((0.0, 0.0, 0.0), (width, 0.0, 0.0), (0.0, depth, height)),
        ((width, depth, height), (width, 0.0, 0.0), (0.0, depth, 0.0)),
    ]
    return [pair[i % 2] for i in range(count)]


def build_binary_stl(triangles, header=STL_HEADER, declared_count=None):
    """Encode triangles as binary STL. declared_count overrides the header count."""
    out = io.BytesIO()
    out.write(header[:80].ljust(80, b"\0"))
    out.write(struct.pack("<I", len(triangles) if declared_count is None else declared_count))
    for tri in triangles:
        out.write(struct.pack("<3f", 0.0, 0.0, 1.0))
        for vertex in tri:
            out.write(struct.pack("<3f", *vertex))
        out.write(struct.pack("<H", 0))
    return out.getvalue()


def model_xml(**metadata):
    """A 3D model document carrying the given <metadata name=...> elements."""
    items = "\n".join(
        f'  <metadata name="{name}">{value}</metadata>' for name, value in metadata.items()
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<model unit="millimeter" xmlns="http://schemas.microsoft.com/3dmanufacturing/core/2015/02">\n'
        f"{items}\n"
        "  <resources/>\n"
        "  <build/>\n"
        "</model>\n"
    )


def build_3mf(xml, entry="3D/3dmodel.model", extra=None):
    """Zip a model document, plus any extra {entry: bytes or str}, into a 3MF container."""
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        if xml is not None:
            zf.writestr(entry, xml)
        for name, data in (extra or {}).items():
            zf.writestr(name, data)
    return out.getvalue()


# Smallest valid PNG: 1x1 transparent pixel
PNG_1X1 = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)
