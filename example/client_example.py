import httpx

from awl_forwarder import ForwarderSettings, encode_calldata
from awl_forwarder.clients import ForwarderClient

relayer_token = "eyJlxxxxxx"  # Replace with a token issued for a whitelisted relayer
signer_key = "0xxxx"  # Signer private key
signer_address = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
target = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"

settings = ForwarderSettings.from_env()


async def main():
    data = encode_calldata(
        "transferFrom(address,address,uint256)",
        ["address", "address", "uint256"],
        [signer_address, "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2", 10**6],
    )
    async with ForwarderClient(
        access_token=relayer_token,
        base_url="http://localhost:8000",
        timeout=httpx.Timeout(60.0, read=120.0),
    ) as client:
        return await client.sign_and_execute(
            private_key=signer_key,
            domain=settings.domain(),
            sender=signer_address,
            to=target,
            data=data,
        )


if __name__ == "__main__":
    import asyncio
    result = asyncio.run(main())
    print("Result:", result.model_dump(mode="json"))
