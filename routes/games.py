from flask import jsonify

from routes.blueprints import api_bp, get_service, get_json_body, require_field


@api_bp.route('/games/<game_id>', methods=['GET'])
def get_game(game_id):
    return jsonify(get_service('game').get_game(game_id).to_dict())


@api_bp.route('/games/<game_id>', methods=['PATCH'])
def update_game(game_id):
    """Enter a score and/or status; completion triggers advancement and seeding"""
    data = get_json_body()
    game = get_service('game').update_game(
        game_id,
        score_a=data.get('score_a'),
        score_b=data.get('score_b'),
        status=data.get('status')
    )
    return jsonify(game.to_dict())


@api_bp.route('/games/<game_id>/advancement', methods=['PUT'])
def set_advancement(game_id):
    """Replace where the winner and loser of a game advance to"""
    data = get_json_body()
    game = get_service('advancement').set_advancement_targets(
        game_id,
        winner_targets=data.get('winner_targets') or [],
        loser_targets=data.get('loser_targets') or []
    )
    return jsonify(game.to_dict())


@api_bp.route('/games/<game_id>/dependencies', methods=['PUT'])
def set_dependencies(game_id):
    data = get_json_body()
    game = get_service('advancement').setup_game_dependencies(game_id, require_field(data, 'sources'))
    return jsonify(game.to_dict())


@api_bp.route('/games/<game_id>/dependencies', methods=['DELETE'])
def remove_dependencies(game_id):
    game = get_service('advancement').remove_game_dependencies(game_id)
    return jsonify(game.to_dict())


@api_bp.route('/games/<game_id>/advance', methods=['POST'])
def advance_game(game_id):
    """Re-run advancement of a completed game, optionally replacing earlier results"""
    data = get_json_body()
    game = get_service('game').get_game(game_id)
    result = get_service('advancement').advance_outcome(game, override=bool(data.get('override', False)))
    return jsonify(result.to_dict())
