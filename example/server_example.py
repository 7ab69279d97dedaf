from awl_forwarder import ForwarderSettings, setup_logger
from awl_forwarder.engine.events import KilledEvent, RelayResultEvent
from awl_forwarder.servers import ForwarderServer, generate_token

# Reads FORWARDER_* / ACCESS_TOKEN_KEY from the environment or a .env file
settings = ForwarderSettings.from_env()
logger = setup_logger(settings.log_level)

app = ForwarderServer.from_settings(settings, title="AWL Forwarder Relay")

owner_token = generate_token(
    private_key=settings.access_token_key,
    subject=settings.owner,
    expires_in=settings.token_expires_in,
)
logger.info(f"Owner token: Bearer {owner_token}")


@app.hook(RelayResultEvent)
async def on_relay_result(event):
    logger.info(f"Relayed {event.signer} -> {event.target} nonce={event.nonce} success={event.success}")


@app.hook(KilledEvent)
async def on_killed(event):
    logger.warning(f"Forwarder killed, {event.amount} wei swept to {event.recipient}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="localhost", port=8000, log_level="debug")
