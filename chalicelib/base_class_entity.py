from typing import Tuple, Dict, List, Any, Optional, Type

from chalicelib.constants.substitute_keys import from_db, to_db
from chalicelib.utils import db as utils_db, exceptions
from chalicelib.utils.data import substitute_keys, now_iso
from chalicelib.utils.logger import logger


class EntityBase:
    """
    Single table entity: a subclass describes its keys, field validators and _to_dict,
    the base class takes care of loading, validation and writes
    """
    pk = None
    sk = None

    required_immutable_fields_validation = {}
    required_mutable_fields_validation = {}
    optional_fields_validation = {}
    deletable_fields = []

    # None values are not written on create
    skip_empty_fields = False

    def __init__(self, id_):
        self.id_: str = id_
        self.record_type: str = ''
        self.request_data: Any[Dict, None] = None
        self.db_record: Dict = {}

    def _get_pk_sk(self) -> Tuple[str, str]:
        """
        Re-implemented by entities whose keys are templates
        :return:
        partkey, sortkey of the entity's record
        """
        return self.pk, self.sk

    def _get_db_item(self) -> Dict:
        return utils_db.get_db_item(*self._get_pk_sk())

    def _load(self, not_found_message: Optional[str] = None,
              not_found_exception: Type[Exception] = exceptions.RecordNotFound):
        """
        Re-initializes the entity from its stored record, request_data survives the reload
        """
        try:
            record = self._get_db_item()
        except exceptions.RecordNotFound:
            if not_found_message is None:
                raise
            raise not_found_exception(not_found_message)
        self.__init__(**{**record, 'request_data': self.request_data})
        return self

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'record_type': self.record_type
        }

    def _init_db_record(self) -> None:
        pk, sk = self._get_pk_sk()
        record = {
            'partkey': pk,
            'sortkey': sk,
            'record_type': self.record_type,
            **self._to_dict()
        }
        if self.skip_empty_fields:
            record = {key: value for key, value in record.items() if value is not None}
        self.db_record = record

    @staticmethod
    def raise_validation_error(key):
        message = f'Validation error occurred while validating field={key}'
        logger.error(f"raise_validation_error ::: {message}")
        raise exceptions.ValidationException(message)

    def _validate_mandatory_fields(self):
        """ Every required field of db_record has to pass its validator """
        required = {**self.required_immutable_fields_validation, **self.required_mutable_fields_validation}
        for key, is_valid in required.items():
            if not is_valid(self.db_record.get(key)):
                self.raise_validation_error(key)

    def _validate_optional_fields(self):
        """ Optional fields are checked only when present """
        for key, is_valid in self.optional_fields_validation.items():
            value = self.db_record.get(key)
            if value is not None and not is_valid(value):
                self.raise_validation_error(key)

    def _get_validated_update_dict(self) -> Dict:
        """
        Mutable and optional fields of the entity, an invalid value fails the whole update.
        Empty values of deletable fields are kept so the attribute gets removed
        """
        validators = {**self.required_mutable_fields_validation, **self.optional_fields_validation}
        clean_dict = {}
        for key, value in self._to_dict().items():
            if key not in validators or value is None:
                continue
            if key in self.deletable_fields and value in ('', [], {}):
                clean_dict[key] = value
            elif validators[key](value):
                clean_dict[key] = value
            else:
                self.raise_validation_error(key)
        return clean_dict

    def _create_db_record(self) -> None:
        self._init_db_record()
        self._validate_mandatory_fields()
        self._validate_optional_fields()
        utils_db.put_db_record(self.db_record)
        logger.info(f"_create_db_record ::: {self.record_type=} {self.id_=} {self.db_record.get('partkey')=} "
                    f"{self.db_record.get('sortkey')=} successfully created")

    def _update_fields_whitelist(self) -> List:
        return [*self.required_mutable_fields_validation.keys(), *self.optional_fields_validation.keys()]

    def _update_db_record(self, update_dict: Dict = None):
        """
        Writes update_dict, or every valid mutable field when it is not given.
        Empty values of deletable fields remove the attribute
        """
        pk, sk = self._get_pk_sk()
        self.date_updated = now_iso()
        if self.request_data is not None:
            self.updated_by = self.request_data.get('auth_result', {}).get('user_id')
        if update_dict is None:
            update_dict = self._get_validated_update_dict()
        substitute_keys(dict_to_process=update_dict, base_keys=to_db)
        utils_db.update_db_record(
            key={'partkey': pk, 'sortkey': sk},
            update_body=update_dict,
            allowed_attrs_to_update=self._update_fields_whitelist(),
            allowed_attrs_to_delete=self.deletable_fields
        )
        logger.info(f"_update_db_record ::: {self.record_type=} {self.id_=} {pk=} {sk=} successfully updated")

    def _delete_db_record(self):
        pk, sk = self._get_pk_sk()
        utils_db.delete_db_record({'partkey': pk, 'sortkey': sk})
        logger.info(f"_delete_db_record ::: {self.record_type=} {self.id_=} successfully deleted")

    def _to_ui(self) -> Dict:
        item = self._to_dict()
        substitute_keys(dict_to_process=item, base_keys=from_db)
        return item

    def to_ui(self) -> Dict:
        return self._to_ui()
