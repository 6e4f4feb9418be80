"""SQL view definitions over the session JSONL files.

Every view is created with CREATE OR REPLACE, so re-issuing the batch is safe.
The file pattern is the only input; the text is otherwise fixed.

Placeholders:
- {pattern}: rendered FilePattern (a quoted glob or a list of quoted globs)
- {columns}: explicit read_ndjson column map
"""

from .session_loader import FilePattern

# View name -> one-line description, in creation order
VIEWS: dict[str, str] = {
    "messages": "All messages (user, assistant, system)",
    "user_messages": "User messages with user-specific fields",
    "human_messages": "Human-typed messages (excludes tool results)",
    "assistant_messages": "Assistant messages with error, requestId, etc.",
    "system_messages": "System messages with hooks, retry info, etc.",
    "raw_messages": "Raw JSON for each message by uuid",
    "tool_uses": "All tool calls with unnested content blocks",
    "tool_results": "Tool results with duration and error status",
    "token_usage": "Token counts per assistant message",
    "bash_commands": "Bash tool calls with extracted command",
    "file_operations": "Read/Write/Edit/Glob/Grep with file paths",
}

# Explicit schema: a field missing from some records must not change the
# column set of the view.
MESSAGE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("uuid", "UUID"),
    ("type", "VARCHAR"),
    ("subtype", "VARCHAR"),
    ("parentUuid", "UUID"),
    ("timestamp", "TIMESTAMP"),
    ("sessionId", "UUID"),
    ("cwd", "VARCHAR"),
    ("gitBranch", "VARCHAR"),
    ("slug", "VARCHAR"),
    ("version", "VARCHAR"),
    ("isSidechain", "BOOLEAN"),
    ("userType", "VARCHAR"),
    ("message", "JSON"),
    ("isCompactSummary", "BOOLEAN"),
    ("isMeta", "BOOLEAN"),
    ("isVisibleInTranscriptOnly", "BOOLEAN"),
    ("sourceToolUseID", "VARCHAR"),
    ("sourceToolAssistantUUID", "UUID"),
    ("thinkingMetadata", "JSON"),
    ("todos", "JSON"),
    ("toolUseResult", "JSON"),
    ("error", "JSON"),
    ("isApiErrorMessage", "BOOLEAN"),
    ("requestId", "VARCHAR"),
    ("content", "VARCHAR"),
    ("compactMetadata", "JSON"),
    ("hasOutput", "BOOLEAN"),
    ("hookCount", "INTEGER"),
    ("hookErrors", "JSON"),
    ("hookInfos", "JSON"),
    ("level", "VARCHAR"),
    ("logicalParentUuid", "UUID"),
    ("maxRetries", "INTEGER"),
    ("preventedContinuation", "BOOLEAN"),
    ("retryAttempt", "INTEGER"),
    ("retryInMs", "INTEGER"),
    ("stopReason", "VARCHAR"),
    ("toolUseID", "VARCHAR"),
)

FILE_OPERATION_TOOLS = ("Read", "Write", "Edit", "Glob", "Grep")
_FILE_OPERATION_TOOLS_SQL = ", ".join(f"'{name}'" for name in FILE_OPERATION_TOOLS)

# Basename of the source file, e.g. agent-a1b2c3.jsonl
_FILE_EXPR = "regexp_extract(filename, '[^/]+$')"

MESSAGES_VIEW = f"""
-- Base messages view with explicit schema
CREATE OR REPLACE VIEW messages AS
SELECT
  {{select_columns}},
  -- Derived fields
  {_FILE_EXPR} AS file,
  starts_with({_FILE_EXPR}, 'agent-') AS isAgent,
  CASE WHEN starts_with({_FILE_EXPR}, 'agent-')
       THEN regexp_extract({_FILE_EXPR}, 'agent-([^.]+)', 1)
       ELSE NULL
  END AS agentId,
  -- Project slug: the directory after /projects/
  regexp_extract(filename, '/projects/([^/]+)/', 1) AS project,
  ordinality AS rownum
FROM read_ndjson(
  {{pattern}},
  filename=true,
  ignore_errors=true,
  columns={{{{{{columns}}}}}}
) WITH ORDINALITY
WHERE type IN ('user', 'assistant', 'system');
"""

USER_MESSAGES_VIEW = """
CREATE OR REPLACE VIEW user_messages AS
SELECT
  uuid, parentUuid, timestamp, sessionId, cwd, gitBranch, slug, version,
  isSidechain, userType, message, isCompactSummary, isMeta,
  isVisibleInTranscriptOnly, sourceToolUseID, sourceToolAssistantUUID,
  thinkingMetadata, todos, toolUseResult, file, isAgent, agentId, project, rownum
FROM messages
WHERE type = 'user';
"""

# Plain-string content only: structured content carries tool results
HUMAN_MESSAGES_VIEW = """
CREATE OR REPLACE VIEW human_messages AS
SELECT
  uuid, parentUuid, timestamp, sessionId, cwd, gitBranch, slug, version,
  isSidechain, message->>'content' AS content, file, project, rownum
FROM user_messages
WHERE json_type(message->'content') = 'VARCHAR'
  AND (agentId IS NULL OR agentId = '')
  AND (isMeta IS NULL OR isMeta = false);
"""

ASSISTANT_MESSAGES_VIEW = """
CREATE OR REPLACE VIEW assistant_messages AS
SELECT
  uuid, parentUuid, timestamp, sessionId, cwd, gitBranch, slug, version,
  isSidechain, userType, message, error, isApiErrorMessage, requestId,
  file, isAgent, agentId, project, rownum
FROM messages
WHERE type = 'assistant';
"""

SYSTEM_MESSAGES_VIEW = """
CREATE OR REPLACE VIEW system_messages AS
SELECT
  uuid, subtype, parentUuid, timestamp, sessionId, cwd, gitBranch, slug,
  version, isSidechain, userType, content, error, compactMetadata,
  hasOutput, hookCount, hookErrors, hookInfos, level, logicalParentUuid,
  maxRetries, preventedContinuation, retryAttempt, retryInMs, stopReason,
  toolUseID, isMeta, file, isAgent, agentId, project, rownum
FROM messages
WHERE type = 'system';
"""

# Schema-less: still answers queries about fields the typed views drop
RAW_MESSAGES_VIEW = """
CREATE OR REPLACE VIEW raw_messages AS
SELECT
  (json->>'uuid')::UUID AS uuid,
  json AS raw
FROM read_ndjson_objects({pattern}, ignore_errors=true)
WHERE json->>'uuid' IS NOT NULL AND length(json->>'uuid') > 0;
"""

# Content blocks carry no ordering key; pos is the block's index in the
# content array and block_index numbers the matching blocks of one record.
_CONTENT_BLOCKS_CTE = """
WITH content_arrays AS (
  SELECT *, CAST(message->'content' AS JSON[]) AS blocks
  FROM {source}
  WHERE json_type(message->'content') = 'ARRAY'
),
content_blocks AS (
  SELECT m.*, t.pos, m.blocks[t.pos + 1] AS block
  FROM content_arrays m,
  LATERAL UNNEST(range(len(m.blocks))) AS t(pos)
)"""

TOOL_USES_VIEW = f"""
CREATE OR REPLACE VIEW tool_uses AS
{_CONTENT_BLOCKS_CTE.format(source="assistant_messages")}
SELECT
  uuid,
  timestamp,
  sessionId,
  isAgent,
  agentId,
  project,
  rownum,
  block->>'name' AS tool_name,
  block->>'id' AS tool_id,
  block->'input' AS tool_input,
  row_number() OVER (PARTITION BY rownum ORDER BY pos) - 1 AS block_index
FROM content_blocks
WHERE block->>'type' = 'tool_use';
"""

TOOL_RESULTS_VIEW = f"""
CREATE OR REPLACE VIEW tool_results AS
{_CONTENT_BLOCKS_CTE.format(source="user_messages")}
SELECT
  uuid,
  timestamp,
  sessionId,
  isAgent,
  agentId,
  project,
  rownum,
  block->>'tool_use_id' AS tool_use_id,
  CAST(block->>'is_error' AS BOOLEAN) AS is_error,
  block->>'content' AS result_content,
  CAST(toolUseResult->>'durationMs' AS INTEGER) AS duration_ms,
  sourceToolAssistantUUID,
  row_number() OVER (PARTITION BY rownum ORDER BY pos) - 1 AS block_index
FROM content_blocks
WHERE block->>'type' = 'tool_result';
"""

TOKEN_USAGE_VIEW = """
CREATE OR REPLACE VIEW token_usage AS
SELECT
  uuid,
  timestamp,
  sessionId,
  isAgent,
  agentId,
  project,
  message->>'model' AS model,
  message->>'stop_reason' AS stop_reason,
  CAST(message->'usage'->>'input_tokens' AS BIGINT) AS input_tokens,
  CAST(message->'usage'->>'output_tokens' AS BIGINT) AS output_tokens,
  CAST(message->'usage'->>'cache_read_input_tokens' AS BIGINT) AS cache_read_tokens,
  CAST(message->'usage'->>'cache_creation_input_tokens' AS BIGINT) AS cache_creation_tokens
FROM assistant_messages
WHERE (message->'usage') IS NOT NULL;
"""

BASH_COMMANDS_VIEW = """
CREATE OR REPLACE VIEW bash_commands AS
SELECT
  uuid,
  timestamp,
  sessionId,
  isAgent,
  agentId,
  project,
  rownum,
  tool_id,
  tool_input->>'command' AS command,
  tool_input->>'description' AS description,
  CAST(tool_input->>'timeout' AS INTEGER) AS timeout,
  CAST(tool_input->>'run_in_background' AS BOOLEAN) AS run_in_background
FROM tool_uses
WHERE tool_name = 'Bash';
"""

FILE_OPERATIONS_VIEW = f"""
CREATE OR REPLACE VIEW file_operations AS
SELECT
  uuid,
  timestamp,
  sessionId,
  isAgent,
  agentId,
  project,
  rownum,
  tool_id,
  tool_name,
  COALESCE(tool_input->>'file_path', tool_input->>'path') AS file_path,
  tool_input->>'pattern' AS pattern
FROM tool_uses
WHERE tool_name IN ({_FILE_OPERATION_TOOLS_SQL});
"""


def _columns_def() -> str:
    return ", ".join(f"'{name}': '{sql_type}'" for name, sql_type in MESSAGE_COLUMNS)


def build_create_views_sql(pattern: FilePattern) -> str:
    """Generate the SQL batch creating all 11 views over pattern.

    Pure: the same pattern always yields the same text.
    """
    rendered = pattern.render()
    messages = MESSAGES_VIEW.format(
        select_columns=",\n  ".join(name for name, _ in MESSAGE_COLUMNS),
        pattern=rendered,
        columns=_columns_def(),
    )
    return "".join(
        [
            messages,
            USER_MESSAGES_VIEW,
            HUMAN_MESSAGES_VIEW,
            ASSISTANT_MESSAGES_VIEW,
            SYSTEM_MESSAGES_VIEW,
            RAW_MESSAGES_VIEW.format(pattern=rendered),
            TOOL_USES_VIEW,
            TOOL_RESULTS_VIEW,
            TOKEN_USAGE_VIEW,
            BASH_COMMANDS_VIEW,
            FILE_OPERATIONS_VIEW,
        ]
    )
