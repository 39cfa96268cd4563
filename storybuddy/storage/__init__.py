"""File-based storage for publications, context documents, and chat sessions.

Data layout:
  data/
    publications/
      index.json                 Publications + activePublicationId
      <id>/
        metadata.json            id, createdAt, updatedAt
        context/<id>.md          Context documents (YAML front matter + Markdown body)
        sessions/
          index.json             Session summaries (messages stripped)
          <id>.json              Full session transcripts
        settings/
          system-prompts.json    Per-mode prompt overrides for this publication
    settings/system-prompts.json Global prompt overrides (fallback)
    chat-history/<mode>.json     Legacy single histories (migration input only)
    sessions/index.json          Legacy flat session index (written by migration)

Ids are epoch milliseconds as strings, bumped on collision. Counters
(contextCount, sessionsCount, messageCount) are recomputed from disk or on
save, never trusted as stored values.

There is no locking anywhere: each operation is a plain read-modify-write,
so two writers to the same file can lose updates.
"""

# Re-export all public symbols so `from storybuddy import storage` keeps working.

from .core import (  # noqa: F401
    StorageError,
    data_dir,
    init_storage,
    new_id,
    now_iso,
    publications_dir,
    resolve,
    validate_id,
)

from .publications import (  # noqa: F401
    create_publication,
    delete_publication,
    get_active_publication_id,
    get_publication,
    list_publications,
    publication_ids,
    update_publication,
)

from .context import (  # noqa: F401
    CONTEXT_TYPES,
    create_context,
    delete_context,
    find_context,
    get_context,
    list_context,
    update_context,
)

from .sessions import (  # noqa: F401
    DEFAULT_MODEL,
    MODES,
    append_messages,
    create_session,
    delete_session,
    find_session,
    get_session,
    list_sessions,
    rename_session,
    save_session,
    update_session,
)

from .settings import (  # noqa: F401
    DEFAULT_SYSTEM_PROMPTS,
    get_prompt_override,
    get_system_prompt,
    set_system_prompt,
)

from .migration import (  # noqa: F401
    check_status as check_migration_status,
    run as run_migration,
)
