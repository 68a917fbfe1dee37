# (c) Copyright IBM Corp. 2021
# (c) Copyright Instana Inc. 2020

import gzip
import json
import threading
import time
from typing import Any, Callable, Optional

from multiverse_harness.log import logger


def to_json(obj: Any) -> bytes:
    """
    Convert the given object to a JSON binary string.

    Objects that aren't natively serializable are reduced to their public
    attributes.

    :param obj: The object to serialize to JSON.
    :return: The JSON string encoded as bytes.
    """
    try:

        def extractor(o: Any) -> dict:
            if not hasattr(o, "__dict__"):
                logger.debug(f"Couldn't serialize non dict type: {type(o)}")
                return {}
            else:
                return {
                    k: v
                    for k, v in o.__dict__.items()
                    if v is not None and not k.startswith("_")
                }

        return json.dumps(
            obj, default=extractor, sort_keys=False, separators=(",", ":")
        ).encode()
    except Exception:
        logger.debug("to_json non-fatal encoding issue: ", exc_info=True)


def decode_body(raw: bytes, content_encoding: str = "") -> Any:
    """
    Decode a request body as sent by the agent: JSON, optionally gzip compressed.
    """
    if content_encoding and content_encoding.lower() == "gzip":
        raw = gzip.decompress(raw)
    if not raw:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("UTF-8")
    return json.loads(raw)


def is_truthy(value: Any) -> bool:
    """
    Check if a value is truthy, accepting various formats.

    @param value: The value to check
    @return: True if the value is considered truthy, False otherwise

    Accepts the following as True:
    - True (Python boolean)
    - "True", "true" (case-insensitive string)
    - "1" (string)
    - 1 (integer)
    """
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return value == 1

    if isinstance(value, str):
        return value.lower() == "true" or value == "1"

    return False


def every(
    delay: float,
    task: Callable[[], Any],
    name: str,
    stop_event: Optional[threading.Event] = None,
) -> None:
    """
    Executes a task every `delay` seconds

    :param delay: the delay in seconds
    :param task: the method to run.  The method should return False if you want the loop to stop.
    :param stop_event: when given, setting it ends the loop without waiting out the delay
    :return: None
    """
    next_time = time.time() + delay

    while True:
        wait = max(0, next_time - time.time())
        if stop_event is None:
            time.sleep(wait)
        elif stop_event.wait(wait):
            break

        try:
            if task() is False:
                break
        except Exception:
            logger.debug(
                f"Problem while executing repetitive task: {name}", exc_info=True
            )

        # skip tasks if we are behind schedule:
        next_time += (time.time() - next_time) // delay * delay + delay
