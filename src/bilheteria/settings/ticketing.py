from decouple import config

# Tolerance applied to both ends of a lot's sale window.
CART_CLOCK_SKEW_SECONDS = config("CART_CLOCK_SKEW_SECONDS", default=60, cast=int)
QR_PAYLOAD_VERSION = config("QR_PAYLOAD_VERSION", default=1, cast=int)
QR_KEY_ID = config("QR_KEY_ID", default="k1")
# 16 bytes = 128-bit nonce
QR_NONCE_BYTES = config("QR_NONCE_BYTES", default=16, cast=int)
