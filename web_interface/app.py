#!/usr/bin/env python3
"""
Web interface for VeilVault
"""

import logging
import os

from flask import Flask, request, jsonify

from veilvault import (
    VaultConfig,
    VaultLedger,
    VaultStore,
    JsonVaultStore,
    InitializeRequest,
    MintRequest,
    BurnRequest,
)
from veilvault.errors import (
    VaultError,
    NotFound,
    Unauthorized,
    AlreadyInitialized,
    InvalidProof,
    InsufficientShares,
    MathOverflow,
    ExternalLedgerFailure,
)
from veilvault.external import InMemoryTokenLedger
from veilvault.keys import NonceRegistry, verify_payload

logger = logging.getLogger(__name__)

REQUEST_WINDOW_SECONDS = 300

ERROR_STATUS = [
    (NotFound, 404),
    (Unauthorized, 403),
    (AlreadyInitialized, 409),
    (InsufficientShares, 409),
    (InvalidProof, 422),
    (MathOverflow, 422),
    (ExternalLedgerFailure, 502),
]


def _status_for(error: VaultError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def _signed_body(signer_field: str, nonces: NonceRegistry, now: int) -> dict:
    """Parse JSON body, check its signature and reject replays"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")

    signature = data.pop('signature', None)
    signer = data.get(signer_field)
    if not isinstance(signature, str) or not isinstance(signer, str) or not signature or not signer:
        raise PermissionError(f"Request must carry '{signer_field}' and 'signature'")

    nonce = data.get('nonce')
    issued_at = data.get('issued_at')
    if not isinstance(nonce, str) or not nonce:
        raise PermissionError("Request must carry a signed 'nonce'")
    if isinstance(issued_at, bool) or not isinstance(issued_at, int):
        raise PermissionError("Request must carry a signed integer 'issued_at'")

    if not verify_payload(data, signature, signer):
        raise PermissionError("Request signature does not match caller")

    fresh, reason = nonces.check_and_record(signer, nonce, issued_at, now)
    if not fresh:
        logger.warning("Rejected replayed or expired request from %s: %s", signer[:16], reason)
        raise PermissionError(reason)

    return data


def _check_vault_id(data: dict, vault_id: str) -> None:
    # Signed body must name the vault in the URL
    if data.get('vault_id') != vault_id:
        raise ValueError("Signed vault_id does not match URL")


def create_app(ledger: VaultLedger, request_window_seconds: int = REQUEST_WINDOW_SECONDS) -> Flask:
    """Build the API around an explicitly configured vault ledger"""
    app = Flask(__name__)
    nonces = NonceRegistry(request_window_seconds)

    @app.errorhandler(VaultError)
    def handle_vault_error(error):
        status = _status_for(error)
        logger.info("Vault operation failed (%d): %s", status, error)
        body = error.to_dict()
        body['success'] = False
        return jsonify(body), status

    @app.errorhandler(PermissionError)
    def handle_unauthenticated(error):
        return jsonify({'success': False, 'error': 'unauthenticated', 'message': str(error)}), 401

    @app.errorhandler(ValueError)
    def handle_bad_request(error):
        return jsonify({'success': False, 'error': 'bad_request', 'message': str(error)}), 400

    @app.errorhandler(KeyError)
    def handle_missing_field(error):
        return jsonify({'success': False, 'error': 'bad_request', 'message': f"Missing field {error}"}), 400

    @app.route('/api/vaults', methods=['POST'])
    def initialize_vault():
        """Initialize the signer's vault"""
        data = _signed_body('owner', nonces, ledger.now())
        snapshot = ledger.initialize(InitializeRequest.from_dict(data))
        return jsonify({'success': True, 'vault': snapshot.to_dict()}), 201

    @app.route('/api/vaults/<vault_id>')
    def get_vault(vault_id):
        """Get vault information"""
        snapshot = ledger.fetch_vault(vault_id)
        proof = ledger.fetch_proof(vault_id)
        return jsonify({
            'vault': snapshot.to_dict(),
            'proof': {'hash': proof.hash.hex(), 'timestamp': proof.timestamp},
            'share_supply': ledger.token_ledger.share_supply(vault_id)
        })

    @app.route('/api/vaults/<vault_id>/mint', methods=['POST'])
    def mint_shares(vault_id):
        """Mint shares against an oracle proof"""
        data = _signed_body('caller', nonces, ledger.now())
        _check_vault_id(data, vault_id)
        snapshot = ledger.mint_shares(MintRequest.from_dict(data))
        return jsonify({'success': True, 'vault': snapshot.to_dict()})

    @app.route('/api/vaults/<vault_id>/burn', methods=['POST'])
    def burn_shares(vault_id):
        """Burn shares and redeem underlying tokens"""
        data = _signed_body('caller', nonces, ledger.now())
        _check_vault_id(data, vault_id)
        snapshot = ledger.burn_shares(BurnRequest.from_dict(data))
        return jsonify({'success': True, 'vault': snapshot.to_dict()})

    @app.route('/api/vaults/<vault_id>/audit')
    def audit_vault(vault_id):
        """Conservation report for one vault"""
        from veilvault.conservation import check_conservation

        vault = ledger.store.get_vault(vault_id)
        if vault is None:
            return jsonify({'success': False, 'error': 'vault_not_found'}), 404
        return jsonify(check_conservation(vault, ledger.token_ledger).to_dict())

    @app.route('/api/audit')
    def audit_all():
        """Conservation reports for every vault"""
        reports = ledger.audit()
        return jsonify({
            'vaults': [r.to_dict() for r in reports],
            'all_conserved': all(r.conserved for r in reports)
        })

    return app


def build_default_app() -> Flask:
    """App configured from the environment with the in-memory token ledger"""
    config = VaultConfig.from_env()
    store_path = os.environ.get("VEILVAULT_STORE_PATH")
    store = JsonVaultStore(store_path) if store_path else VaultStore()
    ledger = VaultLedger(InMemoryTokenLedger(), config=config, store=store)
    return create_app(ledger)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", 10000))
    build_default_app().run(
        host="0.0.0.0",
        port=port,
        debug=False
    )
