"""Schema v1 - Chain history tables.

This version includes tables for:
- Stats (schema version and sync checkpoint)
- Blocks, transactions and actions (append-only, bulk loaded)
- Metadata records
- Domains, tokens, groups and fungible classes (mutable entities)

Tables are listed in creation order.
"""

schema = {
    'version': '1.0.0',
    'tables': [
        {
            'name': 'stats',
            'columns': [
                {'name': 'key', 'type': 'CHARACTER VARYING(21)', 'nullable': False, 'primary_key': True},
                {'name': 'value', 'type': 'CHARACTER VARYING(64)', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'blocks',
            'columns': [
                {'name': 'block_id', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'block_num', 'type': 'INTEGER', 'nullable': False},
                {'name': 'prev_block_id', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'timestamp', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False},
                {'name': 'trx_merkle_root', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'trx_count', 'type': 'INTEGER', 'nullable': False},
                {'name': 'producer', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'pending', 'type': 'BOOLEAN', 'nullable': False, 'default': 'true'},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'blocks_block_id_index', 'columns': ['block_id']},
                {'name': 'blocks_block_num_index', 'columns': ['block_num']}
            ]
        },
        {
            'name': 'transactions',
            'columns': [
                {'name': 'trx_id', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'seq_num', 'type': 'INTEGER', 'nullable': False},
                {'name': 'block_id', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'block_num', 'type': 'INTEGER', 'nullable': False},
                {'name': 'action_count', 'type': 'INTEGER', 'nullable': False},
                {'name': 'timestamp', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False},
                {'name': 'expiration', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False},
                {'name': 'max_charge', 'type': 'INTEGER', 'nullable': False},
                {'name': 'payer', 'type': 'CHARACTER(53)', 'nullable': False},
                {'name': 'pending', 'type': 'BOOLEAN', 'nullable': False, 'default': 'true'},
                {'name': 'type', 'type': 'CHARACTER VARYING(7)', 'nullable': False},
                {'name': 'status', 'type': 'CHARACTER VARYING(9)', 'nullable': False},
                {'name': 'signatures', 'type': 'CHARACTER(120)[]', 'nullable': False},
                {'name': 'keys', 'type': 'CHARACTER(53)[]', 'nullable': False},
                {'name': 'elapsed', 'type': 'INTEGER', 'nullable': False},
                {'name': 'charge', 'type': 'INTEGER', 'nullable': False},
                {'name': 'suspend_name', 'type': 'CHARACTER VARYING(21)'},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'transactions_block_num_index', 'columns': ['block_num']}
            ]
        },
        {
            'name': 'metas',
            'sequences': ['metas_id_seq'],
            'columns': [
                {'name': 'id', 'type': 'INTEGER', 'nullable': False, 'primary_key': True,
                 'default': "nextval('metas_id_seq')"},
                {'name': 'key', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'value', 'type': 'TEXT', 'nullable': False},
                {'name': 'creator', 'type': 'CHARACTER VARYING(57)', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'actions',
            'columns': [
                {'name': 'block_id', 'type': 'CHARACTER(64)', 'nullable': False},
                {'name': 'block_num', 'type': 'INTEGER', 'nullable': False},
                {'name': 'trx_id', 'type': 'CHARACTER VARYING(64)', 'nullable': False},
                {'name': 'seq_num', 'type': 'INTEGER', 'nullable': False},
                {'name': 'name', 'type': 'CHARACTER VARYING(13)', 'nullable': False},
                {'name': 'domain', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'key', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'data', 'type': 'JSONB', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'actions_trx_id_index', 'columns': ['trx_id']}
            ]
        },
        {
            'name': 'domains',
            'columns': [
                {'name': 'name', 'type': 'CHARACTER VARYING(21)', 'nullable': False, 'primary_key': True},
                {'name': 'creator', 'type': 'CHARACTER(53)', 'nullable': False},
                {'name': 'issue', 'type': 'JSONB', 'nullable': False},
                {'name': 'transfer', 'type': 'JSONB', 'nullable': False},
                {'name': 'manage', 'type': 'JSONB', 'nullable': False},
                {'name': 'metas', 'type': 'INTEGER[]', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'domains_creator_index', 'columns': ['creator']}
            ]
        },
        {
            'name': 'tokens',
            'columns': [
                {'name': 'id', 'type': 'CHARACTER VARYING(42)', 'nullable': False, 'primary_key': True},
                {'name': 'domain', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'name', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'owner', 'type': 'CHARACTER(53)[]', 'nullable': False},
                {'name': 'metas', 'type': 'INTEGER[]', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'tokens_owner_index', 'columns': ['owner']}
            ]
        },
        {
            'name': 'groups',
            'columns': [
                {'name': 'name', 'type': 'CHARACTER VARYING(21)', 'nullable': False, 'primary_key': True},
                {'name': 'key', 'type': 'CHARACTER(53)', 'nullable': False},
                {'name': 'def', 'type': 'JSONB', 'nullable': False},
                {'name': 'metas', 'type': 'INTEGER[]', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'groups_key_index', 'columns': ['key']}
            ]
        },
        {
            'name': 'fungibles',
            'columns': [
                {'name': 'name', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'sym_name', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'sym', 'type': 'CHARACTER VARYING(21)', 'nullable': False},
                {'name': 'sym_id', 'type': 'BIGINT', 'nullable': False, 'primary_key': True},
                {'name': 'creator', 'type': 'CHARACTER(53)', 'nullable': False},
                {'name': 'issue', 'type': 'JSONB', 'nullable': False},
                {'name': 'manage', 'type': 'JSONB', 'nullable': False},
                {'name': 'metas', 'type': 'INTEGER[]', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMP WITH TIME ZONE', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'fungibles_creator_index', 'columns': ['creator']}
            ]
        }
    ]
}
