"""Request payloads and helpers shared by the test modules."""
import threading

from yuki.schemas.wallet import EncryptedWalletIn, PasskeyCredentialIn, WalletUpgradeData

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb1"


def envelope(**overrides):
    data = {
        "address": ADDRESS,
        "chain_id": 1,
        "version": 1,
        "cipher_priv": "Y2lwaGVydGV4dA==",
        "iv_priv": "aXYtcHJpdg==",
        "kdf_salt": "c2FsdA==",
        "kdf_params": {"algorithm": "argon2id", "memory": 65536, "iterations": 3, "parallelism": 1},
    }
    data.update(overrides)
    return EncryptedWalletIn(**data)


def envelope_json(**overrides):
    return envelope(**overrides).model_dump(by_alias=True)


def upgrade_data():
    return WalletUpgradeData(
        cipher_priv="bmV3LWNpcGhlcg==",
        iv_priv="bmV3LWl2",
        wrapped_dek_password="ZGVrLXB3",
        iv_dek_password="aXYtcHc=",
        wrapped_dek_passkey="ZGVrLXBr",
        iv_dek_passkey="aXYtcGs=",
    )


def passkey_credential(credential_id="Y3JlZGVudGlhbC0x", counter=0):
    return PasskeyCredentialIn(
        credential_id=credential_id,
        public_key="cHVibGljLWtleQ",
        counter=counter,
        transports=["internal", "hybrid"],
        device_type="multi_device",
        backed_up=True,
    )


def run_concurrently(count, target):
    """Start `count` threads at once and collect what `target` returns in each."""
    barrier = threading.Barrier(count)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        result = target()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes
