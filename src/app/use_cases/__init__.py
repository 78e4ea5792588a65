"""
Use Cases

Organized by domain folder:
- auth/: Password reset flow
"""
