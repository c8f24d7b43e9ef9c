"""
48-bit signing timestamps

TSIG carries the time a message was signed as the number of seconds since the
Unix epoch in a 6 byte unsigned big-endian field.
"""

from datetime import datetime, timedelta, timezone

from .ser import SerializationError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TIME_LEN = 6
MAX_SECONDS = (1 << 48) - 1


def encode_seconds(seconds: int) -> bytes:
    """Encode a 48-bit second count; raises OverflowError outside 0..2**48-1"""
    return seconds.to_bytes(TIME_LEN, 'big')


def decode_seconds(data: bytes) -> int:
    if len(data) != TIME_LEN:
        raise SerializationError("Signing time must be exactly 6 bytes")
    return int.from_bytes(data, 'big')


def to_epoch_seconds(instant: datetime) -> int:
    """Whole seconds between the Unix epoch and instant

    Naive datetimes are taken to be local time.
    """
    return (instant.astimezone(timezone.utc) - EPOCH) // timedelta(seconds=1)


def encode_time(instant: datetime) -> bytes:
    """Encode instant as the 6 byte wire value"""
    return encode_seconds(to_epoch_seconds(instant))


def decode_time(data: bytes) -> datetime:
    """Decode a 6 byte wire value into an aware UTC datetime"""
    seconds = decode_seconds(data)
    try:
        return EPOCH + timedelta(seconds=seconds)
    except OverflowError:
        raise SerializationError(f"Signing time {seconds} is out of range")
