# travelog/api/prompts.py
"""Prompt construction for every AI endpoint.

Builders are pure: the same request always yields the same text, and a
missing optional field renders a fixed fallback word instead of an empty
or ``None`` value.
"""

from __future__ import annotations

import json
import textwrap
from typing import Iterable, Optional

from travelog.api.models import (
    AccommodationRequest,
    ActivitySuggestionRequest,
    ContactExtractionRequest,
    DestinationQuery,
    FinalItineraryRequest,
    RouteRequest,
    TripDetails,
)

NOT_SPECIFIED = "Not specified"
MODERATE = "Moderate"
GENERAL_SIGHTSEEING = "General sightseeing"
GENERAL_TOURISM = "General tourism"
MID_RANGE = "Mid-range"

ITINERARY_SYSTEM_PROMPT = (
    "You are a travel planning AI assistant that creates detailed itineraries in valid "
    "JSON format. Always structure your response exactly as requested."
)

TRIP_DATA_START = "TRIP_DATA_START"
TRIP_DATA_END = "TRIP_DATA_END"


def _or(value: Optional[str], fallback: str) -> str:
    return value if value else fallback


def _join(values: Iterable[str], fallback: str) -> str:
    values = [v for v in values if v]
    return ", ".join(values) if values else fallback


def _render(template: str, example: str, **fields) -> str:
    return textwrap.dedent(template).format(**fields).strip() + "\n" + textwrap.dedent(example).strip()


# ---------------------------------------------------------------------------
# Activity suggestions
# ---------------------------------------------------------------------------

_ACTIVITY_TEMPLATE = """
    You are a local travel expert for {destination}. Based on the following context, suggest 5-8 specific activities for this day of their trip:

    Context:
    - Destination: {destination}
    - Date: {date}
    - Day {day_number} of {total_days} total days
    - Trip: {trip_name}
    - Interests: {interests}
    - Budget: {budget}

    Consider:
    1. Seasonal appropriateness for the date
    2. Logical flow of activities throughout the day
    3. Mix of must-see attractions and local experiences
    4. Travel time between locations
    5. Budget considerations
    6. Day of the week (if applicable)

    For each activity, provide:
    - Name and brief description
    - Estimated duration
    - Best time of day
    - Approximate cost
    - Why it fits this trip

    Respond in JSON format:
"""

_ACTIVITY_EXAMPLE = """
    {{
      "activities": [
        {{
          "name": "activity name",
          "description": "brief description",
          "duration": "2-3 hours",
          "bestTime": "morning/afternoon/evening",
          "estimatedCost": "$10-20",
          "reasoning": "why this fits",
          "category": "sightseeing/food/culture/nature/adventure"
        }}
      ],
      "dayOverview": "A brief summary of the perfect day in {destination}",
      "localTips": ["tip1", "tip2", "tip3"],
      "transportation": "How to get around for these activities"
    }}
"""


def build_activity_prompt(req: ActivitySuggestionRequest) -> str:
    fields = dict(
        destination=req.destination,
        date=req.date,
        day_number=req.day_number if req.day_number is not None else NOT_SPECIFIED,
        total_days=req.total_days if req.total_days is not None else NOT_SPECIFIED,
        trip_name=_or(req.trip_name, NOT_SPECIFIED),
        interests=_join(req.interests, GENERAL_SIGHTSEEING),
        budget=_or(req.budget, MODERATE),
    )
    return _render(_ACTIVITY_TEMPLATE, _ACTIVITY_EXAMPLE.format(**fields), **fields)


# ---------------------------------------------------------------------------
# Destination suggestions
# ---------------------------------------------------------------------------

_DESTINATION_TEMPLATE = """
    You are a travel expert AI assistant. Based on the following trip context, suggest 3-5 destinations that would be perfect for this trip:

    Trip Context:
    - Trip Name: {trip_name}
    - Dates: {start_date} to {end_date}
    - Budget Range: {budget}
    - Interests: {interests}
    - Query: {query}

    For each destination, provide:
    1. Name and country
    2. Why it fits this trip
    3. Best time to visit (considering their travel dates)
    4. Estimated budget category (budget/mid-range/luxury)
    5. Key attractions/activities
    6. Local currency information

    Respond in JSON format:
"""

_DESTINATION_EXAMPLE = """
    {
      "destinations": [
        {
          "name": "destination name",
          "country": "country name",
          "reasoning": "why this fits the trip",
          "bestTimeToVisit": "season/month info",
          "budgetCategory": "budget/mid-range/luxury",
          "keyAttractions": ["attraction1", "attraction2", "attraction3"],
          "currency": {
            "code": "USD",
            "name": "US Dollar",
            "symbol": "$"
          },
          "estimatedDailyBudget": {
            "budget": 50,
            "midRange": 100,
            "luxury": 200
          }
        }
      ]
    }
"""


def build_destination_prompt(req: DestinationQuery) -> str:
    return _render(
        _DESTINATION_TEMPLATE,
        _DESTINATION_EXAMPLE,
        trip_name=_or(req.trip_name, NOT_SPECIFIED),
        start_date=_or(req.trip.start_date, NOT_SPECIFIED),
        end_date=_or(req.trip.end_date, NOT_SPECIFIED),
        budget=_or(req.trip.budget, NOT_SPECIFIED),
        interests=_join(req.trip.interests, NOT_SPECIFIED),
        query=req.query,
    )


# ---------------------------------------------------------------------------
# Accommodation recommendations
# ---------------------------------------------------------------------------

_ACCOMMODATION_TEMPLATE = """
    You are a hotel and accommodation expert for {destination}. Based on the following requirements, recommend the best accommodation options:

    Requirements:
    - Destination: {destination}
    - Check-in: {check_in}
    - Check-out: {check_out}
    - Budget: {budget}
    - Travel Style: {travel_style}
    - Interests: {interests}

    Provide 4-6 accommodation recommendations across different price points and styles.

    For each recommendation, include:
    1. Name and type (hotel/hostel/apartment/etc.)
    2. Neighborhood and why it's good for this trip
    3. Estimated price range per night
    4. Key amenities and features
    5. Why it fits their travel style and interests
    6. Booking recommendations

    Respond in JSON format:
"""

_ACCOMMODATION_EXAMPLE = """
    {
      "recommendations": [
        {
          "name": "accommodation name",
          "type": "hotel/hostel/apartment/guesthouse",
          "neighborhood": "area name",
          "priceRange": "$80-120 per night",
          "rating": "4.2/5",
          "keyFeatures": ["feature1", "feature2", "feature3"],
          "whyRecommended": "explanation for this trip",
          "location": {
            "description": "neighborhood description",
            "proximityToAttractions": "5 min walk to main square",
            "transportation": "Metro station 200m away"
          },
          "bookingTips": "book 2-3 weeks in advance for best rates",
          "category": "budget/mid-range/luxury"
        }
      ],
      "neighborhoodGuide": {
        "bestForFirstTime": "neighborhood name and why",
        "bestForNightlife": "neighborhood name and why",
        "bestForCulture": "neighborhood name and why",
        "bestForBudget": "neighborhood name and why"
      },
      "bookingStrategy": {
        "bestTimeToBook": "when to book for best rates",
        "platforms": ["recommended booking platforms"],
        "seasonalTips": "pricing insights for travel dates"
      },
      "localTips": ["local accommodation tip 1", "local accommodation tip 2"]
    }
"""


def build_accommodation_prompt(req: AccommodationRequest) -> str:
    return _render(
        _ACCOMMODATION_TEMPLATE,
        _ACCOMMODATION_EXAMPLE,
        destination=req.trip.destination,
        check_in=req.check_in,
        check_out=req.check_out,
        budget=_or(req.trip.budget, MODERATE),
        travel_style=_or(req.trip.travel_style, MID_RANGE),
        interests=_join(req.trip.interests, GENERAL_TOURISM),
    )


# ---------------------------------------------------------------------------
# Travel optimizations
# ---------------------------------------------------------------------------

_ROUTE_TEMPLATE = """
    You are a travel logistics expert. Analyze these destinations and travel context to provide optimal travel arrangements:

    Destinations: {destinations}
    Travel Period: {start_date} to {end_date}
    Budget: {budget}

    For this multi-destination trip, provide:
    1. Optimal route order (considering geography, logistics, and experiences)
    2. Best transportation methods between destinations
    3. Estimated travel times and costs
    4. Booking recommendations and timing
    5. Travel tips and considerations

    Respond in JSON format:
"""

_ROUTE_EXAMPLE = """
    {
      "optimizedRoute": [
        {
          "destination": "destination name",
          "order": 1,
          "reasoning": "why this order makes sense",
          "stayDuration": "recommended nights"
        }
      ],
      "transportationPlan": [
        {
          "from": "departure point",
          "to": "arrival point",
          "recommendedMethod": "flight/train/bus/car",
          "estimatedCost": "$100-200",
          "estimatedTime": "2-3 hours",
          "bookingTips": "when and how to book",
          "alternatives": ["alternative method 1", "alternative method 2"]
        }
      ],
      "budgetBreakdown": {
        "transportation": "$500-800",
        "accommodations": "$600-1200",
        "activities": "$300-600",
        "food": "$400-800",
        "total": "$1800-3400"
      },
      "travelTips": ["tip1", "tip2", "tip3"],
      "bestBookingStrategy": "when to book flights, hotels, etc."
    }
"""


def build_route_prompt(req: RouteRequest) -> str:
    return _render(
        _ROUTE_TEMPLATE,
        _ROUTE_EXAMPLE,
        destinations=" → ".join(req.destinations),
        start_date=_or(req.trip.start_date, NOT_SPECIFIED),
        end_date=_or(req.trip.end_date, NOT_SPECIFIED),
        budget=_or(req.trip.budget, MODERATE),
    )


# ---------------------------------------------------------------------------
# Itinerary options and final itinerary
# ---------------------------------------------------------------------------

def _trip_detail_lines(details: TripDetails) -> str:
    lines = [
        f"- Title: {details.title}",
        f"- Duration: {details.duration} {'day' if details.duration == 1 else 'days'}",
        f"- Dates: From {details.start_date.isoformat()} to {details.end_date.isoformat()}",
        f"- Budget: {_or(details.budget, NOT_SPECIFIED)}",
    ]
    if details.interests:
        lines.append(f"- Traveler interests: {details.interests}")
    if details.other_destinations:
        lines.append(f"- Other destinations to include: {', '.join(details.other_destinations)}")
    return "\n".join(lines)


_OPTIONS_TEMPLATE = """
    Create 3 distinct travel itinerary options for a {duration}-day trip to {destination}.

    Trip details:
    {details}

    Consider the season and weather for {destination} during {month}.

    For each itinerary option, please provide:
    1. A unique title that captures the theme of the itinerary
    2. A brief description (1-2 sentences)
    3. 3-5 highlights/unique selling points
    4. A day-by-day breakdown with recommended activities (real place names), suggested places to eat, approximate timing and an estimated cost level ($ to $$$)

    Each option should have a different focus: major highlights for first-time visitors, off-the-beaten-path local experiences, and a specialized interest such as nature, history or food.

    Important considerations:
    - Ensure each day has a logical geographic flow to minimize travel time
    - Include a mix of morning, afternoon, and evening activities
    - Account for opening hours of attractions
    - Activity "type" must be one of: sightseeing, adventure, relaxation, cultural, culinary, other

    Format your response as a valid JSON object with this structure:
"""

_OPTIONS_EXAMPLE = """
    {
      "itineraryOptions": [
        {
          "id": "option1",
          "title": "Option 1 Title",
          "description": "Brief description of the itinerary theme/focus",
          "highlights": ["Highlight 1", "Highlight 2", "Highlight 3"],
          "days": [
            {
              "dayNumber": 1,
              "title": "Day 1 Title",
              "description": "Brief description of the day",
              "activities": [
                {
                  "id": "activity1",
                  "title": "Activity Name",
                  "description": "Brief description including why this is worth visiting",
                  "type": "sightseeing",
                  "location": "Exact location name",
                  "duration": "2 hours",
                  "cost": "$"
                }
              ],
              "meals": [
                "Breakfast: Restaurant name - Brief description",
                "Lunch: Restaurant name - Brief description",
                "Dinner: Restaurant name - Brief description"
              ]
            }
          ]
        }
      ]
    }
"""


def build_options_prompt(details: TripDetails) -> str:
    return _render(
        _OPTIONS_TEMPLATE,
        _OPTIONS_EXAMPLE,
        duration=details.duration,
        destination=details.main_destination,
        details=_trip_detail_lines(details),
        month=details.start_date.strftime("%B"),
    )


_FINAL_TEMPLATE = """
    Create a detailed final itinerary for a trip to {destination}.

    Trip details:
    {details}

    The traveler has selected the following activities:
    {activities}

    Important instructions:
    1. Organize the selected activities into a coherent day-by-day itinerary covering exactly {duration} days
    2. Use dayNumber values 1 to {duration} and dates from {start_date} to {end_date}
    3. Add specific transportation options between activities with estimated travel times
    4. Suggest actual restaurants near each day's activities for breakfast, lunch, and dinner
    5. Schedule activities with logical timing throughout the day (morning, afternoon, evening)
    6. Include practical details like opening hours, estimated costs, and recommended duration
    7. Consider local weather and seasonal conditions for {month}

    Format your response as a valid JSON object with this structure:
"""

_FINAL_EXAMPLE = """
    {{
      "finalItinerary": {{
        "title": {title},
        "description": "A custom-crafted itinerary for your trip to {destination}",
        "days": [
          {{
            "dayNumber": 1,
            "date": "YYYY-MM-DD",
            "title": "Day 1: Title",
            "description": "Day summary",
            "activities": [
              {{
                "title": "Activity Name",
                "description": "Detailed description",
                "type": "sightseeing",
                "location": {{
                  "name": "Location Name",
                  "address": "Full address",
                  "coordinates": {{"lat": 0.0, "lng": 0.0}}
                }},
                "startTime": "09:00",
                "endTime": "11:00",
                "duration": "2 hours",
                "cost": "$20",
                "notes": "Any special notes"
              }}
            ],
            "meals": {{
              "breakfast": {{"name": "Breakfast Place", "location": "Location name", "description": "Brief description"}},
              "lunch": {{"name": "Lunch Place"}},
              "dinner": {{"name": "Dinner Place"}}
            }},
            "accommodation": "Hotel name",
            "notes": "Any notes for the day"
          }}
        ]
      }}
    }}
"""


def _selected_activity_line(activity) -> str:
    day = activity.day_number if activity.day_number is not None else NOT_SPECIFIED
    category = activity.category or "other"
    return f"- Day {day}: {activity.name} - {activity.description or NOT_SPECIFIED} ({category})"


def build_final_itinerary_prompt(req: FinalItineraryRequest) -> str:
    details = req.details
    activities = "\n".join(_selected_activity_line(a) for a in req.selected_activities)
    fields = dict(
        destination=details.main_destination,
        details=_trip_detail_lines(details),
        activities=activities,
        duration=details.duration,
        start_date=details.start_date.isoformat(),
        end_date=details.end_date.isoformat(),
        month=details.start_date.strftime("%B"),
    )
    example = _FINAL_EXAMPLE.format(
        title=json.dumps(details.title),
        destination=details.main_destination,
    )
    return _render(_FINAL_TEMPLATE, example, **fields)


# ---------------------------------------------------------------------------
# Emergency contacts
# ---------------------------------------------------------------------------

_CONTACTS_SYSTEM_TEMPLATE = """
    You are a travel assistant specialized in identifying and extracting emergency contact information from trip data.
    Analyze the provided JSON data which contains accommodation bookings and transportation details for a trip to {destination}.

    Rules:
    1. Extract the full name of the establishment.
    2. Categorize each contact as 'Accommodation', 'Transport', 'Embassy', or 'Other'.
    3. Extract phone numbers, email addresses, and physical addresses if available.
    4. Put confirmation numbers or booking references in the 'notes' field.
    5. Do NOT invent information. Only extract data present in the provided JSON.
    6. If no contacts can be found, return an empty list.
    7. Respond with JSON only, no explanatory text or markdown.

    JSON Output Structure:
"""

_CONTACTS_EXAMPLE = """
    {
      "contacts": [
        {
          "name": "string",
          "type": "Accommodation | Transport | Embassy | Other",
          "phone": "string or null",
          "email": "string or null",
          "address": "string or null",
          "notes": "string or null"
        }
      ]
    }
"""


def build_contacts_system_prompt(req: ContactExtractionRequest) -> str:
    return _render(_CONTACTS_SYSTEM_TEMPLATE, _CONTACTS_EXAMPLE, destination=req.destination)


def build_contacts_prompt(req: ContactExtractionRequest) -> str:
    return "\n".join([
        "Here is the trip data. Please extract the emergency contacts based on these details.",
        "",
        f"Destination: {req.destination}",
        "",
        "Accommodations:",
        json.dumps(req.accommodations, indent=2, sort_keys=True, default=str),
        "",
        "Transport:",
        json.dumps(req.transport, indent=2, sort_keys=True, default=str),
    ])


# ---------------------------------------------------------------------------
# Assistant chat
# ---------------------------------------------------------------------------

ASSISTANT_SYSTEM_PROMPT = textwrap.dedent(f"""
    You are PO, a friendly travel assistant for PandaTraveLog. Your job is to help users plan amazing trips.

    IMPORTANT INSTRUCTIONS:
    1. Be conversational, helpful, and enthusiastic about travel
    2. When a user describes a trip, ask clarifying questions about destination, travel dates, budget, activity interests and accommodation preferences
    3. Once you have enough information, generate a detailed trip itinerary
    4. When presenting a complete itinerary, ALWAYS end with: "Should I create this trip in your Trip Diary?"
    5. Format trip data as JSON when ready to create a trip

    TRIP CREATION FORMAT:
    When you're ready to offer trip creation, include this exact structure in your response:
    {TRIP_DATA_START}
    {{
      "title": "Trip Title",
      "destination": "City, Country",
      "startDate": "YYYY-MM-DD",
      "endDate": "YYYY-MM-DD",
      "itinerary": [
        {{
          "day": 1,
          "date": "YYYY-MM-DD",
          "activities": ["Activity 1", "Activity 2"],
          "accommodation": "Hotel Name",
          "notes": "Any special notes"
        }}
      ]
    }}
    {TRIP_DATA_END}

    Keep responses concise but helpful. Focus on creating memorable travel experiences!
""").strip()


__all__ = [
    "NOT_SPECIFIED",
    "MODERATE",
    "ITINERARY_SYSTEM_PROMPT",
    "ASSISTANT_SYSTEM_PROMPT",
    "TRIP_DATA_START",
    "TRIP_DATA_END",
    "build_activity_prompt",
    "build_destination_prompt",
    "build_accommodation_prompt",
    "build_route_prompt",
    "build_options_prompt",
    "build_final_itinerary_prompt",
    "build_contacts_system_prompt",
    "build_contacts_prompt",
]
