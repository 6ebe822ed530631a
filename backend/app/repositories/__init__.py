"""
Data access layer. Each repository owns the queries for one module and
takes the request's AsyncSession per call; it flushes but never commits
(get_db_session commits once the handler returns).

Missing rows come back as None. Turning None into a 404 is the service's job.
"""
