from flask import jsonify

from routes.blueprints import api_bp, get_service, get_json_body, require_field


def _pool_payload(pool):
    payload = pool.to_dict()
    payload['games'] = [game.to_dict() for game in get_service('pool').get_games_by_pool(pool.id)]
    return payload


@api_bp.route('/divisions/<division_id>/pools', methods=['POST'])
def create_pool(division_id):
    """Create a pool and generate its round robin games"""
    data = get_json_body()
    pool = get_service('pool').create_pool(
        tournament_id=require_field(data, 'tournament_id'),
        division_id=division_id,
        name=require_field(data, 'name'),
        teams=require_field(data, 'teams'),
        advancement_count=data.get('advancement_count')
    )
    return jsonify(_pool_payload(pool)), 201


@api_bp.route('/pools/<pool_id>', methods=['GET'])
def get_pool(pool_id):
    return jsonify(_pool_payload(get_service('pool').get_pool(pool_id)))


@api_bp.route('/pools/<pool_id>/teams', methods=['PUT'])
def update_pool_teams(pool_id):
    """Replace the team list of a pool; its games are regenerated"""
    data = get_json_body()
    pool = get_service('pool').update_pool_teams(
        pool_id,
        require_field(data, 'teams'),
        advancement_count=data.get('advancement_count')
    )
    return jsonify(_pool_payload(pool))


@api_bp.route('/pools/<pool_id>', methods=['DELETE'])
def delete_pool(pool_id):
    get_service('pool').delete_pool(pool_id)
    return '', 204


@api_bp.route('/pools/<pool_id>/standings', methods=['GET'])
def get_pool_standings(pool_id):
    standings = get_service('standings').get_pool_standings(pool_id)
    return jsonify({'pool_id': pool_id, 'standings': [s.to_dict() for s in standings]})
