"""PSVault settings.

Defaults for the credential client and the environment variables that
override them. Environment values are read when a config is resolved, not at
import time.
"""
DEFAULT_STORE_FILENAME = 'MySecrets.xml'
DEFAULT_KEY_FILENAME = 'master.key'
DEFAULT_CREDENTIAL = 'MyService'

# directory levels searched upwards for the default store
PROJECT_ROOT_DEPTH = 4

STORE_ENV = 'PSVAULT_STORE'
MASTER_KEY_ENV = 'PSVAULT_MASTER_KEY'
CREDENTIAL_ENV = 'PSVAULT_CREDENTIAL'
LOG_LEVEL_ENV = 'PSVAULT_LOG_LEVEL'
DEFAULT_LOG_LEVEL = 'WARNING'
