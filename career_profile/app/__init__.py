"""This module serves as the entry point for the career profile application.

It exposes the profile record normalization and reconciliation engine: the
subsystem that merges newly extracted profile facts (skills, work history
entries, achievement statements) into a user's stored canonical profile.

Attributes:
    None

Notes:
    1. This module does not contain any functions or classes of its own.
    2. The actual logic is defined in other modules, such as:
       - app.core.config: Contains application settings and configuration.
       - app.database.database: Manages database engine and session creation.
       - app.logic.skill_normalization: Canonicalizes free-text skill names.
       - app.logic.record_matching: Fuzzy-matches work history records.
       - app.logic.achievement_dedup: Deduplicates and merges achievements.
       - app.logic.profile_reconciliation: Applies extracted facts to a profile.
    3. No disk, network, or database access occurs in this module directly.

"""
