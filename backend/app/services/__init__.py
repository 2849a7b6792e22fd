"""
Services module for the LMS video service.

This package contains the business logic:

- video_service: Provider detection, embed URLs, URL signing and verification,
  lesson sanitization
- lesson_content_service: Lesson lookup with access rules, returning secured content

Services receive their Settings and database handles explicitly and are wired
into routes through FastAPI's dependency system (see app.api.deps).
"""
