# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared SigV4 test vectors.

The ``get-vanilla`` and ``post-vanilla`` cases come from the AWS SigV4
test suite; the IAM signing key from the AWS documentation example for
deriving a signing key.
"""

from kvsauth.sigv4 import CanonicalRequest, Credentials, Verb


# Credentials used throughout the AWS SigV4 test suite
SUITE_ACCESS_KEY_ID = "AKIDEXAMPLE"
SUITE_SECRET_ACCESS_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
SUITE_CREDENTIALS = Credentials(SUITE_ACCESS_KEY_ID, SUITE_SECRET_ACCESS_KEY)
SUITE_REGION = "us-east-1"
SUITE_SERVICE = "service"
SUITE_TIMESTAMP = "20150830T123600Z"
SUITE_EPOCH_SECONDS = 1_440_938_160

SUITE_HEADERS = "host:example.amazonaws.com\nx-amz-date:20150830T123600Z\n"

GET_VANILLA = CanonicalRequest(
    verb=Verb.GET, path="/", canonical_headers=SUITE_HEADERS
)
GET_VANILLA_CANONICAL_REQUEST = (
    "GET\n"
    "/\n"
    "\n"
    "host:example.amazonaws.com\n"
    "x-amz-date:20150830T123600Z\n"
    "\n"
    "host;x-amz-date\n"
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)
GET_VANILLA_STRING_TO_SIGN = (
    "AWS4-HMAC-SHA256\n"
    "20150830T123600Z\n"
    "20150830/us-east-1/service/aws4_request\n"
    "bb579772317eb040ac9ed261061d46c1f17a8133879d6129b6e1c25292927e63"
)
GET_VANILLA_SIGNATURE = (
    "5fa00fa31553b73ebf1942676e86291e8372ff2a2260956d9b8aae1d763fbf31"
)
GET_VANILLA_AUTHORIZATION = (
    "AWS4-HMAC-SHA256 "
    "Credential=AKIDEXAMPLE/20150830/us-east-1/service/aws4_request, "
    "SignedHeaders=host;x-amz-date, "
    f"Signature={GET_VANILLA_SIGNATURE}"
)

POST_VANILLA = CanonicalRequest(
    verb=Verb.POST, path="/", canonical_headers=SUITE_HEADERS
)
POST_VANILLA_SIGNATURE = (
    "5da7c1a2acd57cee7505fc6676e4e544621c30862966e37dddb68e92efbe5d6b"
)

# AWS documentation: signing key for 20150830/us-east-1/iam
IAM_SIGNING_KEY_HEX = (
    "c4afb1cc5771d871763a393e44b703571b55cc28424d1a5e86da6ed3c154a4b9"
)


class FixedClock:
    """Clock frozen at a given epoch time."""

    def __init__(self, epoch_us: int) -> None:
        self.epoch_us = epoch_us

    def now_us(self) -> int:
        return self.epoch_us
