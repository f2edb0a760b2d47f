"""Settings library for the client configuration.

Provides:
    - Schema validation for client.json (api, endpoints, metadata).
    - Loading, saving, and reverting configuration sections.
    - Application paths, including the session storage file.
"""

import json
import logging
import pathlib
import shutil
import string
from typing import Dict, Any, Optional, List

from PySide6 import QtCore

from ..status import status

app_name: str = 'ExpenseClient'

ENDPOINT_KEYS: List[str] = [
    'login',
    'signup',
    'expenses',
    'total',
    'add_expense',
    'delete_expense',
    'category_summary',
    'monthly_report',
    'update_user',
    'delete_user',
]

# Placeholders each endpoint may reference
ENDPOINT_FIELDS: Dict[str, set] = {
    'login': set(),
    'signup': set(),
    'expenses': {'user_id'},
    'total': {'user_id'},
    'add_expense': {'user_id'},
    'delete_expense': {'expense_id'},
    'category_summary': {'user_id'},
    'monthly_report': {'user_id'},
    'update_user': {'user_id'},
    'delete_user': {'user_id'},
}

METADATA_KEYS: List[str] = ['name', 'locale', 'palette']

CLIENT_SCHEMA: Dict[str, Any] = {
    'api': {
        'type': dict,
        'required': True,
        'item_schema': {
            'base_url': {'type': str, 'required': True},
            'timeout': {'type': (int, float), 'required': True},
        }
    },
    'endpoints': {
        'type': dict,
        'required': True,
        'required_keys': ENDPOINT_KEYS,
        'value_type': str,
    },
    'metadata': {
        'type': dict,
        'required': True,
        'required_keys': METADATA_KEYS,
        'item_schema': {
            'name': {'type': str, 'required': True},
            'locale': {'type': str, 'required': True},
            'palette': {'type': str, 'required': True},
        }
    },
}


def _validate_api(api_dict: Dict[str, Any], item_schema: Dict[str, Any]) -> None:
    """Validate the 'api' section.

    Raises:
        ValueError: If a key is missing, the base url is not http(s) or the timeout is not positive.
        TypeError: If a value has the wrong type.
    """
    logging.debug('Validating "api" section.')
    for key, spec in item_schema.items():
        if spec['required'] and key not in api_dict:
            raise ValueError(f'api is missing "{key}".')
        v = api_dict[key]
        if isinstance(v, bool) or not isinstance(v, spec['type']):
            raise TypeError(f'api "{key}" must be {spec["type"]}, got {type(v)}.')

    if not api_dict['base_url'].startswith(('http://', 'https://')):
        raise ValueError(f'api "base_url" must be an http(s) url, got "{api_dict["base_url"]}".')
    if api_dict['timeout'] <= 0:
        raise ValueError(f'api "timeout" must be positive, got {api_dict["timeout"]}.')


def _validate_endpoints(endpoints_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    """Validate the 'endpoints' section.

    Every endpoint must be present, start with '/', and reference only the
    placeholders it is formatted with.

    Raises:
        ValueError: If keys are missing or a path is malformed.
        TypeError: If a path is not a string.
    """
    logging.debug('Validating "endpoints" section.')
    missing = set(specs['required_keys']).difference(endpoints_dict.keys())
    if missing:
        raise ValueError(f'endpoints is missing keys: {sorted(missing)}.')

    formatter = string.Formatter()
    for key, path in endpoints_dict.items():
        if not isinstance(path, specs['value_type']):
            raise TypeError(f'Endpoint "{key}" must be a string.')
        if not path.startswith('/'):
            raise ValueError(f'Endpoint "{key}" must start with "/", got "{path}".')
        fields = {f for _, f, _, _ in formatter.parse(path) if f}
        allowed = ENDPOINT_FIELDS.get(key, set())
        if not fields.issubset(allowed):
            raise ValueError(
                f'Endpoint "{key}" references unknown fields {sorted(fields - allowed)}.'
            )


def _validate_metadata(metadata_dict: Dict[str, Any], specs: Dict[str, Any]) -> None:
    logging.debug('Validating "metadata" section.')
    missing = [k for k in specs['required_keys'] if k not in metadata_dict]
    if missing:
        raise ValueError(f'Missing metadata keys: {missing}')
    for key, spec in specs['item_schema'].items():
        if not isinstance(metadata_dict[key], spec['type']):
            raise TypeError(f'metadata "{key}" must be {spec["type"]}, got {type(metadata_dict[key])}.')

    from ..ui.palette import PALETTES
    if metadata_dict['palette'] not in PALETTES:
        raise ValueError(f'metadata "palette" must be one of {list(PALETTES)}.')


class ConfigPaths:
    """Manage application file paths and ensure the default config exists.

    Args:
        root: Optional directory used instead of the platform app-data location.
    """

    def __init__(self, root: Optional[str] = None) -> None:
        QtCore.QCoreApplication.setApplicationName(app_name)
        QtCore.QCoreApplication.setOrganizationName('')

        if root:
            app_data_dir = pathlib.Path(root)
        else:
            p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
            app_data_dir = pathlib.Path(p)
        logging.debug(f'Using app data directory: {app_data_dir}')

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.client_template: pathlib.Path = self.template_dir / 'client.json.template'

        self.config_dir: pathlib.Path = app_data_dir / 'config'
        self.client_path: pathlib.Path = self.config_dir / 'client.json'

        # QSettings ini file holding the persisted session
        self.usersettings_path: pathlib.Path = self.config_dir / 'usersettings.ini'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Verify the template exists, create the config directory and copy the default config.

        Raises:
            FileNotFoundError: If the client template is missing.
        """
        logging.debug(f'Verifying required templates in {self.template_dir}')
        if not self.client_template.exists():
            msg: str = f'Missing client template: {self.client_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)

        if not self.config_dir.exists():
            logging.debug(f'Creating config directory: {self.config_dir}')
            self.config_dir.mkdir(parents=True, exist_ok=True)

        if not self.client_path.exists():
            logging.debug(f'Copying default client config from template to {self.client_path}')
            shutil.copy(self.client_template, self.client_path)

    def revert_client_to_template(self) -> None:
        """Restore client.json from the default template file."""
        logging.debug(f'Reverting client config to template: {self.client_template}')
        shutil.copy(self.client_template, self.client_path)


class SettingsAPI(ConfigPaths):
    """
    Provides an interface to get/set/revert/save client.json sections.
    """

    def __init__(self, root: Optional[str] = None) -> None:
        super().__init__(root=root)

        self.client_data: Dict[str, Any] = {}
        for k in CLIENT_SCHEMA.keys():
            self.client_data[k] = CLIENT_SCHEMA[k]['type']()

        self.init_data()

    @QtCore.Slot()
    def init_data(self) -> None:
        """Reload client.json, emitting a change signal per section."""
        self.load_client()

        from ..ui.actions import signals
        for section in CLIENT_SCHEMA.keys():
            signals.configSectionChanged.emit(section)

    def load_client(self) -> Dict[str, Any]:
        """Load client.json from disk and validate it against the schema.

        Raises:
            status.ClientConfigNotFoundException: If client.json is missing.
            status.ClientConfigInvalidException: If parsing or validation fails.
        """
        logging.debug(f'Loading client config from "{self.client_path}"')
        if not self.client_path.exists():
            raise status.ClientConfigNotFoundException

        try:
            with self.client_path.open('r', encoding='utf-8') as f:
                data: Dict[str, Any] = json.load(f)
            self.validate_client_data(data)
        except (ValueError, TypeError) as ex:
            raise status.ClientConfigInvalidException(str(ex)) from ex

        self.client_data = data
        return self.client_data

    def validate_client_data(self, data: Dict[str, Any] = None) -> None:
        """Validate client data against :data:`CLIENT_SCHEMA`.

        Raises:
            ValueError: If a required section is missing or a section is malformed.
            TypeError: If a section has the wrong type.
        """
        if data is None:
            data = self.client_data
        if not isinstance(data, dict):
            raise TypeError('Client config must be a JSON object.')

        logging.debug('Validating client data against schema.')
        for field, specs in CLIENT_SCHEMA.items():
            if specs.get('required') and field not in data:
                raise ValueError(f'Missing required field: {field}')

            if not isinstance(data[field], specs['type']):
                raise TypeError(f'Field "{field}" must be {specs["type"]}, got {type(data[field])}.')

            if field == 'api':
                _validate_api(data[field], specs['item_schema'])
            elif field == 'endpoints':
                _validate_endpoints(data[field], specs)
            elif field == 'metadata':
                _validate_metadata(data[field], specs)

        logging.debug('Client data is valid.')

    def get_section(self, section_name: str) -> Any:
        """Return a copy of a configuration section.

        Raises:
            KeyError: If section_name is not a known section.
        """
        return self.client_data[section_name].copy()

    def set_section(self, section_name: str, new_data: Any) -> None:
        """Replace, validate and persist a configuration section.

        The previous value is restored when validation fails.

        Raises:
            ValueError: If section_name is unknown or the data is invalid.
            TypeError: If the data has the wrong type.
        """
        from ..ui.actions import signals

        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for set: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        current_section_data = self.client_data[section_name]
        self.client_data[section_name] = new_data
        try:
            self.validate_client_data()
        except (ValueError, TypeError) as e:
            logging.error(f'Validation error on set_section("{section_name}"): {e}')
            self.client_data[section_name] = current_section_data
            raise

        self.save_section(section_name)
        signals.configSectionChanged.emit(section_name)

    def revert_section(self, section_name: str) -> None:
        """Revert a configuration section to its template default and save it."""
        from ..ui.actions import signals

        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for revert: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.client_template.open('r', encoding='utf-8') as f:
            template_data: Dict[str, Any] = json.load(f)

        self.client_data[section_name] = template_data[section_name]
        self.save_section(section_name)
        signals.configSectionChanged.emit(section_name)

    def save_section(self, section_name: str) -> None:
        """Persist a single configuration section to client.json."""
        if section_name not in CLIENT_SCHEMA:
            msg: str = f'Unknown section_name for save: "{section_name}"'
            logging.error(msg)
            raise ValueError(msg)

        with self.client_path.open('r', encoding='utf-8') as f:
            original_data: Dict[str, Any] = json.load(f)

        new_data: Dict[str, Any] = original_data.copy()
        new_data[section_name] = self.client_data[section_name]

        with self.client_path.open('w', encoding='utf-8') as f:
            json.dump(new_data, f, indent=4, ensure_ascii=False)


settings: SettingsAPI = SettingsAPI()
