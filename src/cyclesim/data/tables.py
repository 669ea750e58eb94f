"""Raw catalog payloads, shaped like the JSON files they are kept in sync with.

Keys here are plain strings; ``cyclesim.data.catalog`` turns them into models.
"""

TOTAL_DISTANCE = 380.0
TIME_LIMIT = 24 * 60 * 60
BUDGET_LIMIT = 5000
MIN_TEAM_SIZE = 2
MAX_TEAM_SIZE = 4
SUPPLY_STATION_KMS = (50.0, 130.0, 220.0, 300.0, 360.0)

ROUTE_DATA = {
    "id": "taipei_kaohsiung",
    "name": "Taipei to Kaohsiung",
    "segments": [
        {
            "id": "seg_1",
            "name": "Taipei City",
            "distance": 20,
            "terrain": "flat",
            "elevation": 50,
            "difficulty": 1,
            "landmark": "Taipei Main Station",
            "description": "Urban start through city traffic",
        },
        {
            "id": "seg_2",
            "name": "New Taipei Suburbs",
            "distance": 30,
            "terrain": "flat",
            "elevation": 100,
            "difficulty": 2,
            "landmark": "Banqiao",
            "description": "Suburban roads with light rollers",
        },
        {
            "id": "seg_3",
            "name": "Taoyuan Plateau",
            "distance": 40,
            "terrain": "uphill",
            "elevation": 250,
            "difficulty": 4,
            "landmark": "Zhongli",
            "description": "Long drag onto the tableland",
        },
        {
            "id": "seg_4",
            "name": "Hsinchu Plain",
            "distance": 40,
            "terrain": "flat",
            "elevation": 100,
            "difficulty": 3,
            "landmark": "Hsinchu City",
            "description": "Open coastal plain, often windy",
        },
        {
            "id": "seg_5",
            "name": "Miaoli Hills",
            "distance": 40,
            "terrain": "uphill",
            "elevation": 400,
            "difficulty": 5,
            "landmark": "Miaoli",
            "description": "The hardest climbing of the day",
        },
        {
            "id": "seg_6",
            "name": "Taichung Basin",
            "distance": 50,
            "terrain": "flat",
            "elevation": 150,
            "difficulty": 2,
            "landmark": "Taichung City",
            "description": "Descent into the basin and fast city roads",
        },
        {
            "id": "seg_7",
            "name": "Changhua Plain",
            "distance": 40,
            "terrain": "flat",
            "elevation": 50,
            "difficulty": 2,
            "landmark": "Changhua",
            "description": "Flat farmland",
        },
        {
            "id": "seg_8",
            "name": "Yunlin Farmland",
            "distance": 40,
            "terrain": "flat",
            "elevation": 80,
            "difficulty": 2,
            "landmark": "Douliu",
            "description": "Quiet rural roads",
        },
        {
            "id": "seg_9",
            "name": "Chiayi City",
            "distance": 30,
            "terrain": "flat",
            "elevation": 100,
            "difficulty": 3,
            "landmark": "Chiayi City",
            "description": "City crossing with junctions",
        },
        {
            "id": "seg_10",
            "name": "Tainan Plain",
            "distance": 30,
            "terrain": "flat",
            "elevation": 50,
            "difficulty": 2,
            "landmark": "Tainan City",
            "description": "Historic capital, flat and hot",
        },
        {
            "id": "seg_11",
            "name": "Kaohsiung City",
            "distance": 20,
            "terrain": "flat",
            "elevation": 30,
            "difficulty": 1,
            "landmark": "Kaohsiung Main Station",
            "description": "Final run to the finish",
        },
    ],
    "stations": [
        {"km": 50, "name": "Zhongli Supply Station", "supplies": ["water", "food", "repair"]},
        {"km": 130, "name": "Hsinchu Supply Station", "supplies": ["water", "food", "energy"]},
        {"km": 220, "name": "Taichung Supply Station", "supplies": ["water", "food", "repair", "rest"]},
        {"km": 300, "name": "Yunlin Supply Station", "supplies": ["water", "food"]},
        {"km": 360, "name": "Tainan Supply Station", "supplies": ["water", "food", "energy"]},
    ],
}

CHARACTER_DATA = [
    {
        "id": "climber",
        "name": "Climber",
        "type": "climber",
        "stats": {"speed": 70, "stamina": 85, "teamwork": 60, "climbing": 95, "sprinting": 50, "recovery": 75},
        "specialty": "+25% on climbs",
        "description": "Light and explosive uphill, vulnerable on the flat",
        "cost": 1000,
    },
    {
        "id": "sprinter",
        "name": "Sprinter",
        "type": "sprinter",
        "stats": {"speed": 100, "stamina": 60, "teamwork": 50, "climbing": 60, "sprinting": 95, "recovery": 65},
        "specialty": "+25% on the flat",
        "description": "Raw top speed, burns through stamina",
        "cost": 1300,
    },
    {
        "id": "domestique",
        "name": "Domestique",
        "type": "domestique",
        "stats": {"speed": 75, "stamina": 90, "teamwork": 100, "climbing": 65, "sprinting": 65, "recovery": 85},
        "specialty": "-12% team stamina consumption",
        "description": "Works for the team and shelters the others",
        "cost": 1400,
    },
    {
        "id": "allrounder",
        "name": "All-Rounder",
        "type": "allrounder",
        "stats": {"speed": 75, "stamina": 75, "teamwork": 75, "climbing": 75, "sprinting": 75, "recovery": 75},
        "specialty": "Adapts to any terrain",
        "description": "No weaknesses, no standout strengths",
        "cost": 1000,
    },
]

EQUIPMENT_DATA = {
    "frame": [
        {"id": "frame_carbon_race", "name": "Carbon Race Frame", "weight": 6.8, "aero": 90, "durability": 75, "cost": 3000,
         "description": "Stiff and light, fragile over long distances"},
        {"id": "frame_carbon_endurance", "name": "Carbon Endurance Frame", "weight": 7.5, "aero": 85, "durability": 90,
         "cost": 2500, "description": "Comfortable geometry for long days"},
        {"id": "frame_aluminum_sport", "name": "Aluminium Sport Frame", "weight": 8.5, "aero": 70, "durability": 85,
         "cost": 1500, "description": "Solid value option"},
        {"id": "frame_steel_classic", "name": "Classic Steel Frame", "weight": 10.0, "aero": 60, "durability": 95,
         "cost": 800, "description": "Heavy but nearly indestructible"},
    ],
    "wheels": [
        {"id": "wheels_carbon_disc", "name": "Carbon Disc Wheels", "weight": 1.2, "aero": 95, "stability": 60,
         "cost": 2500, "description": "Fastest on calm days, nervous in crosswinds"},
        {"id": "wheels_carbon_deep", "name": "Carbon Deep-Section Wheels", "weight": 1.4, "aero": 88, "stability": 70,
         "cost": 2000, "description": "Aero with manageable handling"},
        {"id": "wheels_aluminum_climbing", "name": "Aluminium Climbing Wheels", "weight": 1.5, "aero": 75,
         "stability": 85, "cost": 1200, "description": "Light and stable"},
        {"id": "wheels_aluminum_training", "name": "Aluminium Training Wheels", "weight": 1.8, "aero": 65,
         "stability": 95, "cost": 600, "description": "Robust everyday wheels"},
    ],
    "gears": [
        {"id": "gears_electronic_12speed", "name": "Electronic 12-Speed", "precision": 95, "weight": 0.25,
         "durability": 85, "cost": 1800, "description": "Instant, precise shifting"},
        {"id": "gears_electronic_11speed", "name": "Electronic 11-Speed", "precision": 90, "weight": 0.28,
         "durability": 88, "cost": 1400, "description": "Proven electronic groupset"},
        {"id": "gears_mechanical_12speed", "name": "Mechanical 12-Speed", "precision": 80, "weight": 0.35,
         "durability": 95, "cost": 900, "description": "Reliable cable shifting"},
        {"id": "gears_mechanical_11speed", "name": "Mechanical 11-Speed", "precision": 75, "weight": 0.38,
         "durability": 98, "cost": 500, "description": "Simple and nearly unbreakable"},
    ],
    "accessory": [
        {"id": "acc_power_meter", "name": "Power Meter", "weight": 0.1, "stamina_saving": 0.03, "cost": 600,
         "description": "Pacing data keeps efforts efficient"},
        {"id": "acc_aero_bars", "name": "Aero Bars", "weight": 0.3, "aero_bonus": 5, "ability": "aero_specialist",
         "cost": 400, "description": "Tucked position on long flat roads"},
        {"id": "acc_hydration_system", "name": "Hydration System", "weight": 0.2, "stamina_saving": 0.05, "cost": 200,
         "description": "Drink without breaking rhythm"},
    ],
}


def _mechanical_options(
    quick_delay: float,
    thorough_delay: float,
    limp_speed: float,
    limp_duration: float,
) -> dict:
    return {
        "layer1": [
            {"id": "quick_fix", "label": "Quick fix", "description": "Patch it up and get going",
             "effects": {"time_delay": quick_delay, "morale_delta": -5}},
            {"id": "thorough_repair", "label": "Thorough repair", "description": "Fix it properly",
             "effects": {"time_delay": thorough_delay, "morale_delta": 0}, "next_layer": "repair_scope"},
            {"id": "continue", "label": "Ride on", "description": "Nurse the bike to the next stop",
             "effects": {"speed_modifier": limp_speed, "morale_delta": -10}, "duration": limp_duration},
        ],
        "repair_scope": [
            {"id": "damaged_part", "label": "Damaged part only", "description": "Replace what broke"},
            {"id": "full_check", "label": "Full check", "description": "Go over the whole bike while the riders rest",
             "effects": {"time_delay": thorough_delay + 300, "morale_delta": 5, "stamina_delta": 5}},
        ],
    }


EVENT_DATA = [
    # Weather
    {"id": "weather_tailwind", "name": "Tailwind", "category": "weather",
     "description": "The wind swings round and pushes the team along",
     "trigger": {"probability": 0.15},
     "effects": {"speed_modifier": 1.15, "stamina_drain": 0.9, "weather": "tailwind"},
     "duration": 600, "morale_event": "good_weather"},
    {"id": "weather_headwind", "name": "Headwind", "category": "weather",
     "description": "A strong headwind makes every kilometre hard",
     "trigger": {"probability": 0.12},
     "effects": {"speed_modifier": 0.85, "stamina_drain": 1.2, "weather": "headwind"},
     "duration": 900, "morale_event": "bad_weather"},
    {"id": "weather_rain", "name": "Rain", "category": "weather",
     "description": "Rain sets in and the road turns slick",
     "trigger": {"probability": 0.10},
     "effects": {"speed_modifier": 0.9, "stamina_drain": 1.1, "morale_delta": -5, "weather": "rain"},
     "duration": 1200, "morale_event": "bad_weather",
     "character_modifiers": {"domestique": {"morale": 0.5}}},
    {"id": "weather_clear", "name": "Clearing Skies", "category": "weather",
     "description": "The clouds break and the sun comes out",
     "trigger": {"probability": 0.08},
     "effects": {"morale_delta": 10, "stamina_drain": 0.95, "weather": "sunny"},
     "duration": 1800, "morale_event": "good_weather"},
    # Mechanical
    {"id": "mechanical_puncture", "name": "Puncture", "category": "mechanical",
     "description": "A tyre goes flat",
     "trigger": {"probability": 0.08},
     "decision_tree": _mechanical_options(300, 900, 0.8, 600),
     "character_modifiers": {"domestique": {"time": 0.8}},
     "equipment_modifiers": {"wheels_aluminum_training": {"time": 0.8}, "wheels_carbon_disc": {"time": 1.3}},
     "morale_event": "mechanical_failure"},
    {"id": "mechanical_chain", "name": "Dropped Chain", "category": "mechanical",
     "description": "The chain jumps off the chainring",
     "trigger": {"probability": 0.06},
     "decision_tree": _mechanical_options(60, 300, 0.9, 600),
     "equipment_modifiers": {"gears_electronic_12speed": {"time": 0.7}, "gears_electronic_11speed": {"time": 0.8}},
     "morale_event": "mechanical_failure"},
    {"id": "mechanical_brake", "name": "Brake Noise", "category": "mechanical",
     "description": "The brakes start squealing and rubbing",
     "trigger": {"probability": 0.05},
     "decision_tree": _mechanical_options(300, 900, 0.9, 900),
     "morale_event": "mechanical_failure"},
    # Supply stations
    {"id": "supply_station", "name": "Supply Station", "category": "supply",
     "description": "The team reaches a supply station",
     "trigger": {"probability": 1.0, "mandatory": True, "fixed_locations": list(SUPPLY_STATION_KMS)},
     "decision_tree": {
         "layer1": [
             {"id": "skip", "label": "Ride through", "description": "Keep the rhythm, no stop",
              "effects": {"time_delay": 0, "morale_delta": -5}},
             {"id": "quick", "label": "Quick stop (5 min)", "description": "Bottles and a snack",
              "effects": {"time_delay": 300, "stamina_delta": 15, "morale_delta": 5, "supplied": True},
              "duration": 1800},
             {"id": "full", "label": "Full rest (20 min)", "description": "Eat, stretch and recover",
              "effects": {"time_delay": 1200, "stamina_delta": 50, "morale_delta": 15, "supplied": True},
              "duration": 3600},
         ],
     }},
    # Road conditions
    {"id": "road_smooth", "name": "Smooth Tarmac", "category": "road",
     "description": "Fresh tarmac ahead, the riding is easy",
     "trigger": {"probability": 0.10},
     "effects": {"speed_modifier": 1.1, "morale_delta": 5},
     "duration": 600},
    {"id": "road_rough", "name": "Rough Road", "category": "road",
     "description": "Broken surface, ride carefully",
     "trigger": {"probability": 0.08},
     "effects": {"speed_modifier": 0.9, "stamina_drain": 1.15, "morale_delta": -5},
     "duration": 900,
     "equipment_modifiers": {"frame_carbon_endurance": {"morale": 0.5}, "frame_steel_classic": {"morale": 0.5}}},
    {"id": "road_traffic", "name": "Heavy Traffic", "category": "road",
     "description": "Traffic builds up and the team has to slow",
     "trigger": {"probability": 0.07},
     "effects": {"speed_modifier": 0.85, "morale_delta": -3},
     "duration": 600},
    {"id": "road_pileup", "name": "Pile-up", "category": "road",
     "description": "Riders touch wheels and go down in a heap",
     "trigger": {"probability": 0.03},
     "decision_tree": {
         "layer1": [
             {"id": "regroup", "label": "Stop and regroup", "description": "Wait for everyone and ride on together",
              "effects": {"time_delay": 600, "morale_delta": -5}},
             {"id": "scatter", "label": "Every rider for themselves", "description": "No time lost, formation gone",
              "effects": {"formation_break": True, "morale_delta": -10}},
         ],
     },
     "morale_event": "conflict"},
    # Morale
    {"id": "morale_cheering", "name": "Roadside Cheering", "category": "morale",
     "description": "Locals line the road and cheer the team on",
     "trigger": {"probability": 0.10},
     "effects": {"morale_delta": 15, "stamina_drain": 0.9},
     "duration": 300},
    {"id": "morale_milestone", "name": "Halfway Milestone", "category": "morale",
     "description": "The team passes the halfway marker",
     "trigger": {"probability": 0.5, "distance_ranges": [[185, 200]]},
     "effects": {"morale_delta": 20, "stamina_delta": 10}},
    {"id": "morale_team_conflict", "name": "Team Conflict", "category": "morale",
     "description": "Tired riders start arguing about the pace",
     "trigger": {"probability": 0.15, "morale_threshold": 40},
     "decision_tree": {
         "layer1": [
             {"id": "mediate", "label": "Talk it out", "description": "Stop briefly and settle it",
              "effects": {"time_delay": 300, "morale_delta": 10}},
             {"id": "split", "label": "Split up", "description": "Everyone rides their own race",
              "effects": {"team_disband": True, "formation_break": True, "morale_delta": -15}},
         ],
     },
     "character_modifiers": {"domestique": {"morale": 1.5}},
     "morale_event": "conflict"},
    # Physical
    {"id": "climbing_cramp", "name": "Cramp on the Climb", "category": "physical",
     "description": "Legs seize up on the gradient",
     "trigger": {"probability": 0.12,
                 "terrain": ["slight_uphill", "uphill", "steep_uphill", "extreme_uphill", "climbing"]},
     "effects": {"stamina_delta": -8, "time_delay": 120, "morale_delta": -3},
     "character_modifiers": {"climber": {"stamina": 0.5, "time": 0.5}}},
]

# Default purchases used by the CLI and examples.
DEFAULT_TEAM_IDS = ("domestique", "climber", "sprinter", "allrounder")
DEFAULT_LOADOUT_IDS = {
    "frame": "frame_carbon_endurance",
    "wheels": "wheels_carbon_deep",
    "gears": "gears_electronic_11speed",
    "accessory": ["acc_hydration_system"],
}
