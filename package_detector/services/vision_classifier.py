"""Cloud image classification client and its credential provider."""

import base64
import os
import subprocess
from typing import List, Optional

import requests

from .interfaces import ClassifierInterface, CredentialProviderInterface
from .error_handler import ClassificationError, CredentialError
from ..models.detection import Classification
from ..logging_config import get_logger

logger = get_logger("vision_classifier")

GCLOUD_TOKEN_COMMAND = ["gcloud", "auth", "application-default", "print-access-token"]


class GcloudCredentialProvider(CredentialProviderInterface):
    """Obtains an access token from the gcloud CLI for a service account file."""

    def __init__(self, auth_file: str, command: Optional[List[str]] = None, timeout: float = 30.0):
        self.auth_file = auth_file
        self.command = command or list(GCLOUD_TOKEN_COMMAND)
        self.timeout = timeout

    def get_credential(self) -> str:
        env = dict(os.environ)
        env["GOOGLE_APPLICATION_CREDENTIALS"] = self.auth_file

        try:
            result = subprocess.run(
                self.command,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise CredentialError(f"Unable to run {' '.join(self.command)}: {e}") from e

        output = result.stdout.decode("utf-8", errors="replace").strip()
        if result.returncode != 0:
            raise CredentialError(
                f"Unable to get Google Cloud token (exit {result.returncode}). Output: {output}")
        if not output:
            raise CredentialError("Google Cloud token command returned no token")
        return output


class AutoMLClassifier(ClassifierInterface):
    """Submits images to an AutoML Vision ``:predict`` endpoint."""

    def __init__(self, url: str, timeout: float = 30.0, session: requests.Session = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def build_request(image: bytes) -> dict:
        return {
            "payload": {
                "image": {
                    "imageBytes": base64.b64encode(image).decode("ascii")
                }
            }
        }

    @staticmethod
    def parse_response(body: dict) -> List[Classification]:
        """Turn a predict response into classifications, keeping their order."""
        if not isinstance(body, dict):
            raise ClassificationError("Unexpected classification response shape")

        results = []
        for entry in body.get("payload") or []:
            try:
                label = entry["displayName"]
                score = float(entry.get("classification", {}).get("score", 0.0))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ClassificationError(f"Malformed classification entry {entry!r}: {e}") from e
            results.append(Classification(label=label, confidence=score))
        return results

    def classify(self, image: bytes, credential: str) -> List[Classification]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}"
        }

        try:
            response = self.session.post(
                self.url,
                headers=headers,
                json=self.build_request(image),
                timeout=self.timeout
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise ClassificationError(f"Error evaluating image: {e}") from e
        except ValueError as e:
            raise ClassificationError(f"Classification service returned invalid JSON: {e}") from e

        return self.parse_response(body)
