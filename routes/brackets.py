from flask import jsonify

from constants import SEEDING_SOURCE_MANUAL
from routes.blueprints import api_bp, get_service, get_json_body, require_field


@api_bp.route('/divisions/<division_id>/brackets', methods=['POST'])
def create_bracket(division_id):
    """Create a bracket with its games and advancement links"""
    data = get_json_body()
    bracket = get_service('bracket').create_bracket(
        tournament_id=require_field(data, 'tournament_id'),
        division_id=division_id,
        name=require_field(data, 'name'),
        size=require_field(data, 'size'),
        seeding_source=data.get('seeding_source', SEEDING_SOURCE_MANUAL),
        seeds=data.get('seeds'),
        source_pool_ids=data.get('source_pool_ids'),
        include_third_place=bool(data.get('include_third_place', False))
    )
    return jsonify(get_service('bracket').get_bracket_state(bracket.id)), 201


@api_bp.route('/brackets/<bracket_id>', methods=['GET'])
def get_bracket(bracket_id):
    return jsonify(get_service('bracket').get_bracket_state(bracket_id))


@api_bp.route('/brackets/<bracket_id>/seeds', methods=['PUT'])
def set_bracket_seeds(bracket_id):
    """Set manual seeds; one entry per position, null clears a manual seed"""
    data = get_json_body()
    get_service('seeding').set_manual_seeds(bracket_id, require_field(data, 'seeds'))
    return jsonify(get_service('bracket').get_bracket_state(bracket_id))


@api_bp.route('/brackets/<bracket_id>', methods=['DELETE'])
def delete_bracket(bracket_id):
    get_service('bracket').delete_bracket(bracket_id)
    return '', 204
