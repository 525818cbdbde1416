"""Plain data-access functions over a SQLAlchemy ``Session``.

Nothing in here commits; callers decide the unit of work with
``stockroom.db.session.atomic``.
"""
