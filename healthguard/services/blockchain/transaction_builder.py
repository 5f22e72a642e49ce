"""Zero-value self-payment construction and signing."""

import base64

from algosdk import encoding
from algosdk.atomic_transaction_composer import AccountTransactionSigner
from algosdk.transaction import PaymentTxn, SuggestedParams

from healthguard.utils.exceptions import NoteEncodingError

from .core_constants import MAX_NOTE_BYTES
from .models import Identity


def build_note_transaction(
    identity: Identity,
    params: SuggestedParams,
    note: bytes,
) -> PaymentTxn:
    """
    Build a zero-value payment from the identity to itself.

    Args:
        identity: Sender and receiver
        params: Fresh suggested params from the node
        note: Note payload

    Raises:
        NoteEncodingError: If the note exceeds the ledger limit
    """
    if len(note) > MAX_NOTE_BYTES:
        raise NoteEncodingError(f"Note is {len(note)} bytes, limit is {MAX_NOTE_BYTES}")

    return PaymentTxn(identity.address, params, identity.address, 0, note=note)


def sign_transaction(transaction: PaymentTxn, identity: Identity) -> bytes:
    """
    Sign a transaction with the identity's key.

    Returns:
        msgpack-encoded signed transaction
    """
    signer = AccountTransactionSigner(identity.signing_key)
    signed = signer.sign_transactions([transaction], [0])[0]
    return base64.b64decode(encoding.msgpack_encode(signed))
