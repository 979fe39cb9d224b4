"""
Signature based format identification against the PRONOM registry.

Identification is done by fido, which matches the byte sequences of the
DROID binary signature file.  An identification request pairs the bytes to
identify with a file URI; the URI is only a handle for the request and the
file it points to is never read.
"""

import collections
import io
import logging
import os
import pathlib

logger = logging.getLogger("profiler")

OCTET_STREAM = "application/octet-stream"

IdentificationRequest = collections.namedtuple(
    "IdentificationRequest", ["uri", "payload"]
)
IdentificationResult = collections.namedtuple(
    "IdentificationResult", ["puid", "name", "version", "mime_type", "method"]
)


class SignatureEngineError(Exception):
    pass


def create_byte_array_identification_request(path, payload):
    uri = pathlib.Path(os.path.abspath(path)).as_uri()
    return IdentificationRequest(uri, payload)


def mime_type_from_result(result):
    """Maps an identification result to a MIME type string.

    The format version, when PRONOM knows it, is kept as a `version`
    parameter, e.g. `application/pdf; version="1.4"`.
    """
    mime_type = result.mime_type or OCTET_STREAM
    if result.version:
        mime_type = '%s; version="%s"' % (mime_type, result.version)
    return mime_type


def signature_file_version():
    from fido.versions import get_local_versions

    return get_local_versions().pronom_version


class SignatureIdentifier(object):
    """Identifies payloads by PRONOM byte signatures only.

    fido's own stream and file entry points fall back to matching file
    extensions; this class hands the buffers straight to the signature
    matcher so an identification never depends on a file name.
    """

    def __init__(self, conf_dir=None, **fido_args):
        from fido import CONFIG_DIR
        from fido.fido import Fido
        from fido.versions import get_local_versions

        if conf_dir is None:
            conf_dir = CONFIG_DIR
        versions = get_local_versions(conf_dir)
        fido_args.setdefault("quiet", True)
        fido_args.setdefault("nocontainer", True)
        fido_args.setdefault(
            "format_files", [versions.pronom_signature, versions.fido_extension_signature]
        )
        fido_args.setdefault("containersignature_file", versions.pronom_container_signature)
        self._fido = Fido(conf_dir=conf_dir, **fido_args)

    def identify(self, request):
        """Returns the IdentificationResults for `request`, best match first."""
        payload = request.payload
        # Empty buffers match some signatures, the RTF family among them.
        if not payload:
            return []
        bof, eof, _ = self._fido.get_buffers(
            io.BytesIO(payload), length=len(payload), seekable=True
        )
        results = [_to_result(m, "signature") for m in self._fido.match_formats(bof, eof)]
        logger.debug("Identified %s: %s", request.uri, results)
        return results

    def identify_file(self, path):
        with open(path, "rb") as f:
            payload = f.read()
        return self.identify(create_byte_array_identification_request(path, payload))


def _to_result(match, method):
    # fido reports (format element, signature name) pairs.
    fmt = match[0]
    return IdentificationResult(
        puid=fmt.findtext("puid"),
        name=fmt.findtext("name"),
        version=fmt.findtext("version"),
        mime_type=fmt.findtext("mime"),
        method=method,
    )
