"""
Core infrastructure for the LMS video service.

- auth: Optional bearer-token identification of the requesting user
- database: MongoDB async client with Motor driver and connection pooling
"""
