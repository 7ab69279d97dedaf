"""Sign a ForwardRequest offline and print the typed data and signature."""

import json

from eth_account import Account

from awl_forwarder import ForwarderSettings, build_forward_request, encode_calldata, sign_forward_request
from awl_forwarder.adapters.evm.signatures import build_forward_request_typed_data

signer_key = "0xxxx"  # Signer private key
target = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"
nonce = 0  # GET /nonce/{address}

settings = ForwarderSettings.from_env()
signer = Account.from_key(signer_key).address

request = build_forward_request(
    sender=signer,
    to=target,
    nonce=nonce,
    data=encode_calldata(
        "transferFrom(address,address,uint256)",
        ["address", "address", "uint256"],
        [signer, "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2", 10**6],
    ),
)
signature = sign_forward_request(private_key=signer_key, domain=settings.domain(), request=request)

print(json.dumps(build_forward_request_typed_data(settings.domain(), request).to_dict(), indent=2))
print("Signature:", "0x" + signature.hex())
