"""Pipeline components.

- Settings loaded from the environment and `.env`
- Structured logging
- Change detection and the changed-path sources behind it
- The typos spell-check stage
- A small CLI surface
"""
