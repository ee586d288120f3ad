# ballotbox/security/input_validator.py

import re
import html
import bleach

# Validation of identifiers and sanitization of free text coming from the
# presentation layer before it reaches the store.


class InputValidator:
    def __init__(self):
        self.allowed_html_tags = []
        self.allowed_html_attributes = {}

        self.patterns = {
            'username': re.compile(r'^[A-Za-z0-9_.-]{3,64}$'),
            'xss_script': re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL),
            'xss_event': re.compile(r'\bon\w+\s*=', re.IGNORECASE)
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValueError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]

        sanitized = re.sub(self.patterns['xss_script'], '', input_str)
        sanitized = re.sub(self.patterns['xss_event'], '', sanitized)
        sanitized = bleach.clean(sanitized, tags=self.allowed_html_tags,
                                 attributes=self.allowed_html_attributes, strip=True)
        # bleach escapes what it keeps; store the plain text
        return html.unescape(sanitized).strip()

    def validate_username(self, username):
        return isinstance(username, str) and bool(self.patterns['username'].match(username.strip()))

    def validate_identifier(self, value, field='id'):
        """Coerce a positive integer id (ints or digit strings). Raises ValueError."""
        if isinstance(value, bool):
            raise ValueError(f"Invalid {field}")
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or value <= 0:
            raise ValueError(f"Invalid {field}")
        return value

    def validate_vote_request(self, vote_data):
        if not isinstance(vote_data, dict):
            raise ValueError("Vote data must be a dictionary")

        for field in ('voter_id', 'candidate_id'):
            if field not in vote_data:
                raise ValueError(f"Missing required vote field: {field}")

        return (self.validate_identifier(vote_data['voter_id'], 'voter_id'),
                self.validate_identifier(vote_data['candidate_id'], 'candidate_id'))

    def validate_admin_data(self, admin_data, partial=False):
        """
        Validate and sanitize an admin payload. With partial=True only the
        fields present are checked (used for updates).
        """
        if not isinstance(admin_data, dict):
            raise ValueError("Admin data must be a dictionary")

        required = () if partial else ('username', 'password', 'name')
        for field in required:
            if not admin_data.get(field):
                raise ValueError(f"Missing required admin field: {field}")

        cleaned = {}
        if 'username' in admin_data:
            if not self.validate_username(admin_data['username']):
                raise ValueError("Invalid admin username")
            cleaned['username'] = admin_data['username'].strip()
        if 'password' in admin_data:
            if not isinstance(admin_data['password'], str) or not admin_data['password']:
                raise ValueError("Invalid admin password")
            cleaned['password'] = admin_data['password']
        for field, max_length in (('name', 120), ('role', 30), ('email', 254), ('phone', 30)):
            if admin_data.get(field) is not None:
                cleaned[field] = self.sanitize_string(admin_data[field], max_length=max_length)
        if 'permissions' in admin_data:
            permissions = admin_data['permissions']
            if not isinstance(permissions, list) or not all(isinstance(p, str) for p in permissions):
                raise ValueError("Permissions must be a list of strings")
            cleaned['permissions'] = [p.strip().lower() for p in permissions]
        if 'id' in admin_data:
            cleaned['id'] = self.validate_identifier(admin_data['id'], 'admin id')
        return cleaned
