"""
Job Lifecycle Test Suite.

- State transition tests
- Persistence tests
- Execution engine tests (background runs, webhook outcome, concurrency)
- Submission service tests
- Recovery tests
"""
