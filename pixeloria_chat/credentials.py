"""Encrypted provider credentials and their last known validity."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .db import db
from .errors import NotFoundError, ValidationError
from .models import ProviderCredential, utcnow
from .providers import ProviderRegistry, ProviderTester
from .utils.crypto import CredentialVault, mask_for_display

logger = logging.getLogger(__name__)


def _check_strings(**fields) -> None:
    for field, value in fields.items():
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")


class CredentialStore:
    def __init__(self, vault: CredentialVault, tester: ProviderTester, registry: ProviderRegistry):
        self.vault = vault
        self.tester = tester
        self.registry = registry

    def _check_provider(self, provider_id: str) -> str:
        provider_id = provider_id.strip().lower()
        if provider_id not in self.registry:
            raise ValidationError(f"unknown provider: {provider_id}")
        return provider_id

    def save(
        self,
        provider_id: str,
        name: str,
        api_key: str,
        model_name: Optional[str] = None,
        is_enabled: bool = False,
        description: str = '',
        icon: str = '',
        color: str = '',
        updated_by: Optional[str] = None,
    ) -> Tuple[ProviderCredential, bool]:
        """Encrypt, test and upsert a provider key.

        The record is saved even when the key fails its test; ``status`` then
        reads ``error`` and the provider is withheld from chats.

        Returns:
            The stored credential and whether the key tested valid.

        Raises:
            ValidationError: Missing fields or a provider outside the registry.
            EncryptionError: The key could not be encrypted; nothing is stored.
        """
        _check_strings(id=provider_id, name=name, apiKey=api_key, modelName=model_name)
        if not all(value and value.strip() for value in (provider_id, name, api_key)):
            raise ValidationError("Missing required fields: id, name, and apiKey are required")
        provider_id = self._check_provider(provider_id)
        name = name.strip()

        encrypted = self.vault.encrypt(api_key)
        is_valid = self.tester.test_credential(provider_id, api_key)

        credential = db.session.get(ProviderCredential, provider_id)
        if credential is None:
            logger.info(f"[CREDENTIALS] Creating AI model {provider_id}")
            credential = ProviderCredential(id=provider_id)
            db.session.add(credential)
        else:
            logger.info(f"[CREDENTIALS] Updating AI model {provider_id}")
        credential.name = name
        credential.description = description or ''
        credential.icon = icon or ''
        credential.color = color or ''
        credential.encrypted_api_key = encrypted
        credential.model_name = model_name or ''
        credential.is_enabled = bool(is_enabled)
        credential.status = 'active' if is_valid else 'error'
        if is_valid:
            credential.last_tested = utcnow()
        if updated_by:
            credential.updated_by = updated_by
        db.session.commit()
        logger.info(f"[CREDENTIALS] AI model {provider_id} saved with status {credential.status}")
        return credential, is_valid

    def test(self, provider_id: str, api_key: str) -> bool:
        """Test a key and record the outcome on the stored credential, if any."""
        _check_strings(modelId=provider_id, apiKey=api_key)
        if not provider_id or not api_key:
            raise ValidationError("Model ID and API key are required")
        provider_id = self._check_provider(provider_id)

        is_valid = self.tester.test_credential(provider_id, api_key)
        credential = db.session.get(ProviderCredential, provider_id)
        if credential is not None:
            credential.status = 'active' if is_valid else 'error'
            if is_valid:
                credential.last_tested = utcnow()
            db.session.commit()
        return is_valid

    def list_masked(self) -> List[Dict[str, Any]]:
        out = []
        for credential in ProviderCredential.query.order_by(ProviderCredential.id.asc()).all():
            data = credential.to_dict()
            data["apiKey"] = mask_for_display(self.vault.decrypt(credential.encrypted_api_key))
            out.append(data)
        return out

    def list_usable(self) -> List[Dict[str, Any]]:
        """Providers a chat may use right now, without any key material."""
        rows = (
            ProviderCredential.query
            .filter(ProviderCredential.is_enabled.is_(True), ProviderCredential.status == 'active')
            .order_by(ProviderCredential.id.asc())
            .all()
        )
        return [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "icon": c.icon,
                "color": c.color,
                "status": c.status,
            }
            for c in rows
        ]

    def get_usable_key(self, provider_id: str) -> Optional[Tuple[str, str]]:
        """Return (api_key, model_name) for an enabled, active provider."""
        credential = db.session.get(ProviderCredential, (provider_id or '').lower())
        if credential is None or not credential.is_usable:
            return None
        api_key = self.vault.decrypt(credential.encrypted_api_key)
        if not api_key:
            logger.warning(f"[CREDENTIALS] Stored key for {credential.id} could not be decrypted")
            return None
        return api_key, credential.model_name or ''

    def delete(self, provider_id: str) -> None:
        credential = db.session.get(ProviderCredential, (provider_id or '').lower())
        if credential is None:
            raise NotFoundError("AI model not found")
        db.session.delete(credential)
        db.session.commit()
        logger.info(f"[CREDENTIALS] Deleted AI model {provider_id}")
