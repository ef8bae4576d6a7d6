"""API test helpers - settings and handlers wired around a mocked Gemini client."""

from assistant0.config import Settings
from assistant0.core.provisioning import Capability
from assistant0.services.agent_runner import AgentInvoker
from assistant0.services.capability_provisioner import CapabilityProvisioner
from assistant0.services.request_handler import ChatRequestHandler


def make_settings(**overrides) -> Settings:
    values = {"google_api_key": "test-key", "environment": "production"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_handler(model_client, base=(), token_provider=None, build_extended=None,
                 **settings) -> ChatRequestHandler:
    return ChatRequestHandler(
        make_settings(**settings),
        CapabilityProvisioner(base, token_provider, build_extended),
        lambda: AgentInvoker(model_client),
        template="TEMPLATE",
    )


async def noop_handler(input_data):
    return {"status": "ok"}


def capability(name, requires_credential=False) -> Capability:
    return Capability(
        name, f"{name} tool", {"type": "object", "properties": {}}, noop_handler,
        requires_credential,
    )
