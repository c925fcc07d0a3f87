"""Entity mapper.

Every entity-affecting action maps to one rendering rule that appends plan
invocations to the unit's mutation batch. Values are always passed as plan
parameters; JSON fields are rendered to text and cast by the plan.
"""
import logging
from typing import Callable, Dict, Tuple, Union

from database.lib.batch import MutationBatch

from .models import (
    Action,
    AddMeta,
    Burned,
    DestroyToken,
    IssueToken,
    NewDomain,
    NewFungible,
    NewGroup,
    Owned,
    Ownership,
    TransferToken,
    UpdateDomain,
    UpdateFungible,
    UpdateGroup,
)
from .renderer import to_json, token_id

logger = logging.getLogger(__name__)

# Owner set of a destroyed token
BURNED_OWNER = 'EVT00000000000000000000000000000000000000000000000000'

# Addressing of the add-metadata target
FUNGIBLE_NAMESPACE = '.fungible'
GROUP_NAMESPACE = '.group'
DOMAIN_META_KEY = '.meta'


def set_ownership(batch: MutationBatch, tid: str, ownership: Ownership) -> None:
    if isinstance(ownership, Burned):
        batch.add('destroy_token', tid, BURNED_OWNER)
    else:
        batch.add('transfer_token', tid, list(ownership.owners))


def meta_target(domain: str, key: str) -> Tuple[str, Union[str, int]]:
    """Return the owner-update plan and the owner key for an add-metadata action."""
    if domain == FUNGIBLE_NAMESPACE:
        return 'append_fungible_meta', int(key)
    if domain == GROUP_NAMESPACE:
        return 'append_group_meta', key
    if key == DOMAIN_META_KEY:
        return 'append_domain_meta', domain
    return 'append_token_meta', token_id(domain, key)


def render_newdomain(batch: MutationBatch, action: Action) -> None:
    nd = NewDomain.model_validate(action.data)
    batch.add('insert_domain', nd.name, nd.creator,
              to_json(nd.issue), to_json(nd.transfer), to_json(nd.manage))


def render_updatedomain(batch: MutationBatch, action: Action) -> None:
    ud = UpdateDomain.model_validate(action.data)
    batch.add('update_domain', ud.name,
              to_json(ud.issue), to_json(ud.transfer), to_json(ud.manage))


def render_issuetoken(batch: MutationBatch, action: Action) -> None:
    it = IssueToken.model_validate(action.data)
    for name in it.names:
        batch.add('insert_token', token_id(it.domain, name), it.domain, name, list(it.owner))


def render_transfer(batch: MutationBatch, action: Action) -> None:
    tf = TransferToken.model_validate(action.data)
    set_ownership(batch, token_id(tf.domain, tf.name), Owned(tuple(tf.to)))


def render_destroytoken(batch: MutationBatch, action: Action) -> None:
    dt = DestroyToken.model_validate(action.data)
    set_ownership(batch, token_id(dt.domain, dt.name), Burned())


def render_newgroup(batch: MutationBatch, action: Action) -> None:
    ng = NewGroup.model_validate(action.data)
    batch.add('insert_group', ng.name, ng.group.key, to_json(ng.group.root))


def render_updategroup(batch: MutationBatch, action: Action) -> None:
    ug = UpdateGroup.model_validate(action.data)
    batch.add('update_group', ug.name, to_json(ug.group.root))


def render_newfungible(batch: MutationBatch, action: Action) -> None:
    nf = NewFungible.model_validate(action.data)
    batch.add('insert_fungible', nf.name, nf.sym_name, nf.sym, nf.sym_id, nf.creator,
              to_json(nf.issue), to_json(nf.manage))


def render_updfungible(batch: MutationBatch, action: Action) -> None:
    uf = UpdateFungible.model_validate(action.data)
    batch.add('update_fungible', uf.sym_id, to_json(uf.issue), to_json(uf.manage))


def render_addmeta(batch: MutationBatch, action: Action) -> None:
    am = AddMeta.model_validate(action.data)
    plan, owner = meta_target(action.domain, action.key)
    # The new meta id is returned by the insert and fed to the owner update
    batch.add_chained('insert_meta', (am.key, am.value, am.creator), plan, (owner,))


RULES: Dict[str, Callable[[MutationBatch, Action], None]] = {
    'newdomain': render_newdomain,
    'updatedomain': render_updatedomain,
    'issuetoken': render_issuetoken,
    'transfer': render_transfer,
    'destroytoken': render_destroytoken,
    'newgroup': render_newgroup,
    'updategroup': render_updategroup,
    'newfungible': render_newfungible,
    'updfungible': render_updfungible,
    'addmeta': render_addmeta,
}


def render_action(batch: MutationBatch, action: Action) -> bool:
    """Append the mutations of ``action`` to ``batch``.

    Returns:
        False when the action does not affect any entity
    """
    rule = RULES.get(action.name)
    if rule is None:
        logger.debug(f"No entity rule for action {action.name}")
        return False
    rule(batch, action)
    return True
