user_fixtures = [
    {"username": "johndoe", "email": "john.doe@example.org", "first_name": "John", "last_name": "Doe"},
    {"username": "janedoe", "email": "jane.doe@example.org", "first_name": "Jane", "last_name": "Doe"},
    {"username": "charlie", "email": "charlie.johnson@example.org", "first_name": "Charlie", "last_name": "Johnson"},
]

categories = ["Breakfast", "Lunch", "Dinner", "Dessert", "Vegan"]
tags_pool = ["quick", "family", "spicy", "budget", "comfort", "healthy", "high_protein", "low_carb"]

comment_phrases = [
    "Looks yummy",
    "Definitely will be trying this out",
    "made it last night, 10/10",
    "what did you use for the sauce?",
    "can i swap chicken for tofu?",
    "how spicy is it though",
    "Doubled the garlic, no regrets",
    "Kids loved it",
]

reply_phrases = [
    "Thanks so much!",
    "Tofu works great, press it first",
    "Not very, add chilli to taste",
    "Glad you enjoyed it",
]
