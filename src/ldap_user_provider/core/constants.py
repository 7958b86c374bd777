"""Shared constants across the application."""

# Truth value strings
YES_VALUES = ('1', 'TRUE', 'YES', 'ON', 'true', 'yes', 'on')

# Filter join operators
FILTER_AND = '&'
FILTER_OR = '|'

# Prefix added to every slugified role name
ROLE_PREFIX = 'ROLE_'

# Default configuration values
DEFAULT_LDAP_HOST = 'ldap://localhost:389'
DEFAULT_LDAP_FILTER = '(objectClass=*)'
DEFAULT_LDAP_TIMEOUT = 5
DEFAULT_LDAP_ATTRIBUTES = 'uid=username,mail=email,cn=display_name'

DEFAULT_ROLE_USER_DN_ATTR = 'member'
DEFAULT_ROLE_NAME_ATTR = 'cn'
DEFAULT_MANAGES_USER_DN_ATTR = 'manager'
DEFAULT_MANAGES_NAME_ATTR = 'uid'
