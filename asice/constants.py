# Container identification
MIMETYPE_ENTRY = "mimetype"
ASICE_MIME_TYPE = "application/vnd.etsi.asic-e+zip"
ARCHIVE_COMMENT = ("mimetype=" + ASICE_MIME_TYPE).encode("ascii")

# Reserved metadata namespace (compared case-insensitively)
META_INF = "META-INF/"

# Paths written by the bundled signature strategy and processors
ASIC_MANIFEST_PATH = "META-INF/ASiCManifest.xml"
SIGNATURE_PATH = "META-INF/signature.sig"
OASIS_MANIFEST_PATH = "META-INF/manifest.xml"

MIME_XML = "application/xml"
MIME_OCTET_STREAM = "application/octet-stream"
MIME_SIGNATURE = "application/octet-stream"

# XML namespaces
NS_ASIC = "http://uri.etsi.org/02918/v1.2.1#"
NS_DS = "http://www.w3.org/2000/09/xmldsig#"
NS_MANIFEST = "urn:oasis:names:tc:opendocument:xmlns:manifest:1.0"

# hashlib name -> XML digest method URI
DIGEST_METHOD_URIS = {
    "sha1": "http://www.w3.org/2000/09/xmldsig#sha1",
    "sha224": "http://www.w3.org/2001/04/xmldsig-more#sha224",
    "sha256": "http://www.w3.org/2001/04/xmlenc#sha256",
    "sha384": "http://www.w3.org/2001/04/xmldsig-more#sha384",
    "sha512": "http://www.w3.org/2001/04/xmlenc#sha512",
    "sha3_256": "http://www.w3.org/2007/05/xmldsig-more#sha3-256",
    "sha3_512": "http://www.w3.org/2007/05/xmldsig-more#sha3-512",
}

DEFAULT_DIGEST_ALGORITHMS = ("sha256",)

# Entry encryption stream
ENC_MAGIC = b"ASICENC1"  # 8 bytes
ENC_EXTENSION = ".enc"
ENC_FRAME_SIZE = 64 * 1024
ENC_STREAM_ID_SIZE = 16

KDF_NONE = 0
KDF_ARGON2ID = 1

# Argon2id defaults for password-derived entry keys
ARGON_TIME_COST = 3
ARGON_MEMORY_COST_KIB = 256 * 1024  # 256 MiB
ARGON_PARALLELISM = 4

# Copy buffer for add_file
COPY_BUFFER_SIZE = 1_048_576  # 1 MiB
