import json
import logging
from collections.abc import Awaitable, Callable

from langchain_core.output_parsers import PydanticOutputParser, StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.utils.json import parse_json_markdown
from langchain_openai import ChatOpenAI

from career_profile.app.core.config import Settings, get_settings
from career_profile.app.core.errors import AchievementMergeError
from career_profile.app.llm.models import AchievementMergeResult, LLMConfig
from career_profile.app.llm.prompts import (
    ACHIEVEMENT_MERGE_HUMAN_PROMPT,
    ACHIEVEMENT_MERGE_SYSTEM_PROMPT,
)

log = logging.getLogger(__name__)

# Pluggable merge capability: numbered statements in, validated merge result out.
AchievementMerger = Callable[[list[str]], Awaitable[AchievementMergeResult]]


def get_llm_config(settings: Settings | None = None) -> LLMConfig:
    """Builds the LLM configuration for the achievement merge call.

    Args:
        settings (Settings | None): Settings to read from. Defaults to the global settings.

    Returns:
        LLMConfig: Endpoint, API key, model name and temperature for the merge call.

    """
    settings = settings or get_settings()
    return LLMConfig(
        llm_endpoint=settings.llm_endpoint,
        api_key=settings.llm_api_key,
        llm_model_name=settings.llm_model_name,
        temperature=settings.achievement_merge_temperature,
    )


def _initialize_llm_client(llm_config: LLMConfig) -> ChatOpenAI:
    """Initializes the ChatOpenAI client from an LLMConfig.

    Args:
        llm_config (LLMConfig): The LLM configuration.

    Returns:
        ChatOpenAI: The configured client.

    Notes:
        1. Determine the model name, falling back to "gpt-4o" when unset or empty.
        2. Set the custom endpoint when provided, adding the OpenRouter headers for openrouter.ai.
        3. Use the API key when provided; for non-OpenRouter custom endpoints
           without a key, pass a dummy key to satisfy the client library.
        4. Otherwise the client relies on the OPENAI_API_KEY environment variable.

    """
    model_name = llm_config.llm_model_name if llm_config.llm_model_name else "gpt-4o"

    llm_params = {
        "model": model_name,
        "temperature": llm_config.temperature,
    }
    if llm_config.llm_endpoint:
        llm_params["openai_api_base"] = llm_config.llm_endpoint
        if "openrouter.ai" in llm_config.llm_endpoint:
            llm_params["default_headers"] = {
                "HTTP-Referer": "http://localhost:8000/",
                "X-Title": "Career Profile",
            }

    if llm_config.api_key:
        llm_params["api_key"] = llm_config.api_key
    elif llm_config.llm_endpoint and "openrouter.ai" not in llm_config.llm_endpoint:
        llm_params["api_key"] = "not-needed"

    return ChatOpenAI(**llm_params)


def format_achievements_list(statements: list[str]) -> str:
    """Renders statements as a 1-indexed numbered list."""
    return "\n".join(
        f"{index}. {statement}" for index, statement in enumerate(statements, start=1)
    )


def validate_merge_completeness(
    result: AchievementMergeResult,
    statement_count: int,
) -> None:
    """Checks that a merge result accounts for every input statement exactly.

    Args:
        result (AchievementMergeResult): The parsed merge result.
        statement_count (int): Number of statements that were sent to the LLM.

    Returns:
        None

    Raises:
        AchievementMergeError: If any index in 1..statement_count is missing,
            or any index outside that range is referenced,
            or any description is blank.

    Notes:
        1. Collect the union of every `original_indices` list.
        2. Compare it with the expected set {1..statement_count}.
        3. Missing indices mean a statement would be silently dropped.
        4. Unknown indices mean the output refers to statements that were never sent.
        5. A blank description would be dropped on write, losing the statements it covers.

    """
    referenced: set[int] = set()
    for achievement in result.final_achievements:
        referenced.update(achievement.original_indices)

    expected = set(range(1, statement_count + 1))
    missing = sorted(expected - referenced)
    unknown = sorted(referenced - expected)

    if missing:
        _msg = f"Merge result failed to account for achievements: {missing}"
        log.error(_msg)
        raise AchievementMergeError(_msg, missing_indices=missing)

    if unknown:
        _msg = f"Merge result referenced unknown achievement indices: {unknown}"
        log.error(_msg)
        raise AchievementMergeError(_msg)

    blank = sorted(
        index
        for achievement in result.final_achievements
        if not (achievement.description or "").strip()
        for index in achievement.original_indices
    )
    if blank:
        _msg = f"Merge result has blank descriptions for achievements: {blank}"
        log.error(_msg)
        raise AchievementMergeError(_msg, missing_indices=blank)


async def merge_achievement_statements(
    statements: list[str],
    llm_config: LLMConfig,
) -> AchievementMergeResult:
    """Uses an LLM to merge near-duplicate achievement statements.

    Args:
        statements (list[str]): Unique achievement statements, in creation order.
        llm_config (LLMConfig): The LLM configuration.

    Returns:
        AchievementMergeResult: The validated merge result. Every input index
            is referenced by at least one output statement.

    Raises:
        AchievementMergeError: If the response is not valid JSON, does not match
            the schema, or fails the completeness check.

    Notes:
        1. Set up a PydanticOutputParser to describe the AchievementMergeResult schema.
        2. Create a ChatPromptTemplate with the merge rules and the statement count.
        3. Initialize the ChatOpenAI client.
        4. Create a chain combining the prompt, LLM, and a StrOutputParser.
        5. Asynchronously invoke the chain with the numbered statement list.
        6. Parse the JSON-Markdown output and validate it against the schema.
        7. Run the completeness check before returning.

    Network access:
        - This function makes a network request to the LLM endpoint.
    """
    _msg = f"merge_achievement_statements starting with {len(statements)} statements"
    log.debug(_msg)

    parser = PydanticOutputParser(pydantic_object=AchievementMergeResult)

    prompt = ChatPromptTemplate.from_messages(
        [
            ("system", ACHIEVEMENT_MERGE_SYSTEM_PROMPT),
            ("human", ACHIEVEMENT_MERGE_HUMAN_PROMPT),
        ]
    ).partial(
        format_instructions=parser.get_format_instructions(),
        statement_count=str(len(statements)),
    )

    llm = _initialize_llm_client(llm_config)

    # Use StrOutputParser to get the raw string, then manually parse
    chain = prompt | llm | StrOutputParser()

    try:
        response_str = await chain.ainvoke(
            {"achievements_list": format_achievements_list(statements)}
        )
        parsed_json = parse_json_markdown(response_str)
        result = AchievementMergeResult.model_validate(parsed_json)
    except (json.JSONDecodeError, ValueError) as e:
        _msg = f"Failed to parse LLM response for achievement merge: {e!s}"
        log.exception(_msg)
        raise AchievementMergeError(
            "The AI service returned an unexpected response for the achievement merge."
        ) from e

    validate_merge_completeness(result, len(statements))

    _msg = (
        f"merge_achievement_statements returning {len(result.final_achievements)} statements"
    )
    log.debug(_msg)
    return result


def create_llm_achievement_merger(llm_config: LLMConfig | None = None) -> AchievementMerger:
    """Binds an LLMConfig to `merge_achievement_statements`.

    Args:
        llm_config (LLMConfig | None): The LLM configuration. Defaults to the one built from settings.

    Returns:
        AchievementMerger: An async callable taking the statements to merge.

    """
    config = llm_config or get_llm_config()

    async def _merge(statements: list[str]) -> AchievementMergeResult:
        return await merge_achievement_statements(statements, config)

    return _merge
