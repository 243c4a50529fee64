"""
Domain Constants

Centrally manages the provider/model catalogue and the defaults shared across
the sampling engine.
"""

from oneword_core.domain.entities import ModelInfo, ProviderInfo, Stimulus
from oneword_core.domain.value_objects import ModelPricing

# Sent to every provider as the system instruction
SYSTEM_PROMPT = (
    "Continue this sentence with exactly one word. "
    "Respond with only that single word, nothing else."
)

DEFAULT_MAX_TOKENS = 5
DEFAULT_REQUESTS_PER_MINUTE = 60
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_PACING_DELAY_SECONDS = 0.1
RECENT_WORDS_LIMIT = 10

# Rough token estimate used for cost accounting (one word ~ one output token)
CHARS_PER_TOKEN = 4
OUTPUT_TOKENS_PER_CALL = 1


def _model(model_id: str, provider_id: str, name: str, generation: str,
           input_cost: float, output_cost: float) -> ModelInfo:
    return ModelInfo(
        id=model_id,
        provider_id=provider_id,
        name=name,
        generation=generation,
        pricing=ModelPricing(input_cost_per_1k=input_cost, output_cost_per_1k=output_cost),
    )


# Model pricing is USD / 1k tokens
ANTHROPIC = ProviderInfo(
    id="anthropic",
    name="Anthropic",
    base_url="https://api.anthropic.com",
    models=(
        _model("claude-opus-4-5-20251101", "anthropic", "Claude 4.5 Opus", "4.5", 0.005, 0.025),
        _model("claude-sonnet-4-5-20250929", "anthropic", "Claude 4.5 Sonnet", "4.5", 0.003, 0.015),
        _model("claude-haiku-4-5-20251001", "anthropic", "Claude 4.5 Haiku", "4.5", 0.001, 0.005),
        _model("claude-opus-4-1-20250805", "anthropic", "Claude 4.1 Opus", "4.1", 0.015, 0.075),
        _model("claude-opus-4-20250514", "anthropic", "Claude 4 Opus", "4", 0.015, 0.075),
        _model("claude-sonnet-4-20250514", "anthropic", "Claude 4 Sonnet", "4", 0.003, 0.015),
        _model("claude-3-7-sonnet-20250219", "anthropic", "Claude 3.7 Sonnet", "3.7", 0.003, 0.015),
        _model("claude-3-5-haiku-20241022", "anthropic", "Claude 3.5 Haiku", "3.5", 0.001, 0.005),
        _model("claude-3-opus-20240229", "anthropic", "Claude 3 Opus", "3", 0.015, 0.075),
        _model("claude-3-haiku-20240307", "anthropic", "Claude 3 Haiku", "3", 0.00025, 0.00125),
    ),
)

OPENAI = ProviderInfo(
    id="openai",
    name="OpenAI",
    base_url="https://api.openai.com/v1",
    models=(
        _model("o1", "openai", "o1", "o1", 0.015, 0.06),
        _model("o1-mini", "openai", "o1 Mini", "o1", 0.003, 0.012),
        _model("o3-mini", "openai", "o3 Mini", "o3", 0.0011, 0.0044),
        _model("gpt-4o", "openai", "GPT-4o", "4o", 0.0025, 0.01),
        _model("gpt-4o-mini", "openai", "GPT-4o Mini", "4o", 0.00015, 0.0006),
        _model("gpt-4-turbo", "openai", "GPT-4 Turbo", "4", 0.01, 0.03),
    ),
)

KIMI = ProviderInfo(
    id="kimi",
    name="Kimi",
    base_url="https://api.moonshot.cn/v1",
    models=(
        _model("moonshot-v1-8k", "kimi", "Moonshot v1 8K", "1", 0.001, 0.002),
        _model("moonshot-v1-32k", "kimi", "Moonshot v1 32K", "1", 0.002, 0.004),
        _model("moonshot-v1-128k", "kimi", "Moonshot v1 128K", "1", 0.006, 0.012),
    ),
)

GOOGLE = ProviderInfo(
    id="google",
    name="Google",
    base_url="https://generativelanguage.googleapis.com",
    models=(
        _model("gemini-3-pro-preview", "google", "Gemini 3 Pro (preview)", "3", 0.00125, 0.01),
        _model("gemini-3-flash-preview", "google", "Gemini 3 Flash (preview)", "3", 0.0001, 0.0004),
        _model("gemini-2.5-pro", "google", "Gemini 2.5 Pro", "2.5", 0.00125, 0.005),
        _model("gemini-2.5-flash", "google", "Gemini 2.5 Flash", "2.5", 0.000075, 0.0003),
    ),
)

PROVIDER_CATALOGUE: tuple[ProviderInfo, ...] = (ANTHROPIC, OPENAI, KIMI, GOOGLE)

# Default model list for the CLI
DEFAULT_MODELS = [
    "claude-haiku-4-5-20251001",
    "gpt-4o-mini",
]

# Stimulus library entries that are always available
BUILT_IN_STIMULI = (
    Stimulus("existential-1", "the word that scares me most in the world is", "existential", True),
    Stimulus("existential-2", "when I think about death, the first word that comes to mind is", "existential", True),
    Stimulus("identity-1", "if I had to describe myself in one word, it would be", "identity", True),
    Stimulus("creative-1", "if colors had tastes, blue would taste like", "creative", True),
    Stimulus("creative-2", "the sound of the universe expanding is", "creative", True),
    Stimulus("memory-1", "my earliest memory feels like the word", "memory", True),
    Stimulus("future-1", "in one hundred years, the world will be", "future", True),
    Stimulus("future-2", "the first word aliens would teach humans is", "future", True),
)
