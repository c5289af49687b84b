from flask import jsonify

from routes.blueprints import api_bp, get_service


@api_bp.route('/divisions/<division_id>/standings', methods=['GET'])
def get_division_standings(division_id):
    standings_service = get_service('standings')
    by_pool = standings_service.get_division_standings(division_id)
    return jsonify({
        'division_id': division_id,
        'pools': {pool_id: [s.to_dict() for s in standings] for pool_id, standings in by_pool.items()},
        'advancing': [s.to_dict() for s in standings_service.get_advancing_teams(division_id)],
        'ranking': [s.to_dict() for s in standings_service.get_division_ranking(division_id)],
    })


@api_bp.route('/divisions/<division_id>/teams/<team_name>', methods=['GET'])
def get_team_record(division_id, team_name):
    return jsonify(get_service('standings').get_team_record(division_id, team_name))


@api_bp.route('/divisions/<division_id>/pools/complete', methods=['GET'])
def get_pools_complete(division_id):
    seeding_service = get_service('seeding')
    tournament_format = seeding_service.get_tournament_format(division_id)
    tournament_format['pools_complete'] = seeding_service.check_pools_complete(division_id)
    return jsonify(tournament_format)


@api_bp.route('/divisions/<division_id>/seed', methods=['POST'])
def seed_division(division_id):
    """Seed all pool-fed brackets of a division from final pool standings"""
    seeded = get_service('seeding').auto_seed_brackets(division_id)
    return jsonify({'division_id': division_id, 'seeded_brackets': seeded})


@api_bp.route('/divisions/<division_id>/validation', methods=['GET'])
def validate_division(division_id):
    return jsonify(get_service('seeding').validate_structure(division_id))
