"""One-time verification codes: issue a code to a receiver, verify it later.

Typical use, inside a transactional session:

    async for db in get_db():
        engine = create_verification_engine(db)
        record = await engine.issue("user@example.com", "password_reset", user_id)
        ...
        ok = await engine.verify("user@example.com", "password_reset", user_id, code)
"""
